from __future__ import annotations

import logging
from pathlib import Path

from markdown_it import MarkdownIt

from docshelf.core.encoding import decode_utf8
from docshelf.core.errors import ConversionError
from docshelf.domain.models.document import MarkdownConfig

logger = logging.getLogger(__name__)


def markdown_to_html(base_dir: Path, config: MarkdownConfig) -> str:
    md_file_path = base_dir / config.path
    logger.info("converting markdown to html: %s", md_file_path)
    try:
        raw = md_file_path.read_bytes()
    except OSError as exc:
        raise ConversionError(f"Unable to read markdown file {md_file_path}: {exc}") from exc
    return MarkdownIt("commonmark").render(decode_utf8(raw, f"markdown file {md_file_path}"))
