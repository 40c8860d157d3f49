from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from docshelf.application.services.defaults_builder import (
    METADATA_KEY,
    build_converter_defaults,
    render_defaults_yaml,
)
from docshelf.core.encoding import decode_utf8
from docshelf.core.errors import ConversionError, InvalidFormatError
from docshelf.core.files import scoped_temp_file
from docshelf.domain.models.document import Document, FormatKind, MarkdownConfig
from docshelf.infrastructure.converters.markdown_renderer import markdown_to_html
from docshelf.infrastructure.converters.pandoc_runner import PandocRunner

logger = logging.getLogger(__name__)

HTML_FORMAT = "html"
BINARY_FORMATS = frozenset({"docx", "epub", "epub2", "epub3", "odt", "pdf", "pptx"})
# pandoc picks these writers from the output file name rather than -t.
FILE_OUTPUT_SUFFIXES = {"pdf": ".pdf"}
# Dropped from manifest defaults; output goes to stdout or a scoped temp file.
OUTPUT_FILE_KEY = "output-file"
_FORMAT_RE = re.compile(r"^[a-z0-9_]+(?:[+-][a-z0-9_]+)*$")


@dataclass(frozen=True, slots=True)
class ConversionResult:
    format: str
    content: bytes | str

    @property
    def is_binary(self) -> bool:
        return isinstance(self.content, bytes)


def normalize_format(target: str) -> str:
    fmt = str(target or "").strip().lower()
    if not fmt:
        raise InvalidFormatError("Target format is required")
    if not _FORMAT_RE.match(fmt):
        raise InvalidFormatError(f"Invalid target format: {target!r}")
    return fmt


class ConversionService:
    def __init__(
        self,
        runner: PandocRunner,
        markdown_renderer: Callable[[Path, MarkdownConfig], str] = markdown_to_html,
    ) -> None:
        self.runner = runner
        self.markdown_renderer = markdown_renderer

    def render_html(self, document: Document) -> str:
        if document.format is FormatKind.COMMONMARK:
            return self._render_native_html(document)
        if document.format is FormatKind.PANDOC:
            result = self._run_pandoc(document.base_dir, HTML_FORMAT, self._defaults_yaml(document))
            return str(result.content)
        raise ConversionError(f"Unsupported document format: {document.format}")

    def convert(self, document: Document, target: str) -> ConversionResult:
        fmt = normalize_format(target)
        logger.info("converting %s (%s) to %s", document.slug, document.format.value, fmt)
        if document.format is FormatKind.COMMONMARK:
            if fmt == HTML_FORMAT:
                return ConversionResult(format=fmt, content=self._render_native_html(document))
            return self._convert_via_html(document, fmt)
        if document.format is FormatKind.PANDOC:
            return self._run_pandoc(document.base_dir, fmt, self._defaults_yaml(document))
        raise ConversionError(f"Unsupported document format: {document.format}")

    def _render_native_html(self, document: Document) -> str:
        if document.commonmark is None:
            raise ConversionError(f"No commonmark config for document: {document.slug}")
        return self.markdown_renderer(document.base_dir, document.commonmark)

    def _convert_via_html(self, document: Document, fmt: str) -> ConversionResult:
        html = self.render_html(document)
        with scoped_temp_file(suffix=".html", prefix="docshelf-html-", content=html) as html_path:
            logger.info("reconverting %s from html via %s", document.slug, html_path)
            defaults = {
                "from": HTML_FORMAT,
                "input-files": [str(html_path)],
                METADATA_KEY: build_converter_defaults(document)[METADATA_KEY],
            }
            return self._run_pandoc(document.base_dir, fmt, render_defaults_yaml(defaults))

    def _run_pandoc(self, base_dir: Path, fmt: str, defaults_yaml: str) -> ConversionResult:
        suffix = FILE_OUTPUT_SUFFIXES.get(fmt)
        if suffix is None:
            output = self.runner.run_with_defaults(base_dir, ["-t", fmt], defaults_yaml)
            return self._result(fmt, output)

        with scoped_temp_file(suffix=suffix, prefix="docshelf-output-") as output_path:
            self.runner.run_with_defaults(base_dir, ["-o", str(output_path)], defaults_yaml)
            try:
                content = output_path.read_bytes()
            except OSError as exc:
                raise ConversionError(f"pandoc produced no {fmt} output: {exc}") from exc
            if not content:
                raise ConversionError(f"pandoc produced an empty {fmt} output file")
            return ConversionResult(format=fmt, content=content)

    @staticmethod
    def _defaults_yaml(document: Document) -> str:
        defaults = build_converter_defaults(document)
        declared_output = defaults.pop(OUTPUT_FILE_KEY, None)
        if declared_output is not None:
            logger.warning("ignoring %s=%r declared by %s", OUTPUT_FILE_KEY, declared_output, document.slug)
        return render_defaults_yaml(defaults)

    @staticmethod
    def _result(fmt: str, output: bytes) -> ConversionResult:
        if fmt in BINARY_FORMATS:
            return ConversionResult(format=fmt, content=output)
        return ConversionResult(format=fmt, content=decode_utf8(output, f"pandoc {fmt} output"))
