from pathlib import Path
from typing import Any, Callable, Sequence

import dataclasses
import pytest
import yaml

from docshelf.application.services.conversion_service import ConversionService
from docshelf.application.services.sourcing_service import source_from_directory
from docshelf.core.errors import ConversionError, EncodingError, InvalidFormatError
from docshelf.domain.models.document import Document
from docshelf.infrastructure.converters.pandoc_runner import PandocRunner


class RecordingRunner:
    def __init__(self, output: bytes = b"converted", *, write_output_file: bool = True) -> None:
        self.output = output
        self.write_output_file = write_output_file
        self.calls: list[dict[str, Any]] = []

    def run_with_defaults(self, base_dir: Path, args: Sequence[str], defaults_yaml: str) -> bytes:
        defaults = yaml.safe_load(defaults_yaml)
        inputs = defaults.get("input-files") or []
        self.calls.append(
            {
                "base_dir": base_dir,
                "args": list(args),
                "defaults": defaults,
                "input_paths": [Path(item) for item in inputs],
                "html_input": Path(inputs[0]).read_text(encoding="utf-8") if inputs else None,
            }
        )
        if "-o" in args and self.write_output_file:
            Path(args[list(args).index("-o") + 1]).write_bytes(b"%PDF-1.4 recorded")
        return self.output


def _documents(content_tree: Path) -> dict[str, Document]:
    return {doc.slug: doc for doc in source_from_directory(content_tree).documents}


def test_native_html_does_not_invoke_converter(content_tree: Path) -> None:
    runner = RecordingRunner()
    service = ConversionService(runner)  # type: ignore[arg-type]
    document = _documents(content_tree)["writing-in-markdown"]

    result = service.convert(document, "HTML")

    assert result.format == "html"
    assert "<h1>Hello</h1>" in result.content
    assert service.render_html(document) == result.content
    assert runner.calls == []


def test_native_document_reaches_other_formats_through_html(content_tree: Path) -> None:
    runner = RecordingRunner(output=b"PK docx bytes")
    service = ConversionService(runner)  # type: ignore[arg-type]
    document = _documents(content_tree)["writing-in-markdown"]

    result = service.convert(document, "docx")

    assert result.is_binary
    assert result.content == b"PK docx bytes"
    assert len(runner.calls) == 1
    call = runner.calls[0]
    assert call["args"] == ["-t", "docx"]
    assert call["base_dir"] == document.base_dir
    assert call["defaults"]["from"] == "html"
    assert "<h1>Hello</h1>" in call["html_input"]
    assert call["defaults"]["metadata"]["title"] == "Writing in Markdown"
    assert call["defaults"]["metadata"]["author"] == ["Ada Lovelace"]
    assert not call["input_paths"][0].exists()


def test_native_document_without_markdown_config_fails(content_tree: Path) -> None:
    document = dataclasses.replace(_documents(content_tree)["writing-in-markdown"], commonmark=None)
    service = ConversionService(RecordingRunner())  # type: ignore[arg-type]

    with pytest.raises(ConversionError, match="No commonmark config"):
        service.render_html(document)


def test_pandoc_document_converts_directly_with_merged_defaults(content_tree: Path) -> None:
    runner = RecordingRunner(output="<p>Some <em>pandoc</em> text.</p>".encode("utf-8"))
    service = ConversionService(runner)  # type: ignore[arg-type]
    document = _documents(content_tree)["writing-in-pandoc-markdown"]

    result = service.convert(document, "html")

    assert result.content == "<p>Some <em>pandoc</em> text.</p>"
    assert len(runner.calls) == 1
    call = runner.calls[0]
    assert call["args"] == ["-t", "html"]
    assert call["defaults"]["input-file"] == "content.md"
    assert call["defaults"]["metadata"]["title"] == "Custom Title"
    assert call["defaults"]["metadata"]["date"] == "2021-06-01"


def test_pdf_is_written_to_a_scoped_output_file(content_tree: Path) -> None:
    runner = RecordingRunner(output=b"")
    service = ConversionService(runner)  # type: ignore[arg-type]
    document = _documents(content_tree)["writing-in-pandoc-markdown"]

    result = service.convert(document, "pdf")

    assert result.content == b"%PDF-1.4 recorded"
    args = runner.calls[0]["args"]
    assert args[0] == "-o"
    assert args[1].endswith(".pdf")
    assert not Path(args[1]).exists()


def test_pdf_run_that_leaves_the_output_file_empty_fails(content_tree: Path) -> None:
    runner = RecordingRunner(output=b"", write_output_file=False)
    service = ConversionService(runner)  # type: ignore[arg-type]
    document = _documents(content_tree)["writing-in-pandoc-markdown"]

    with pytest.raises(ConversionError, match="empty pdf output"):
        service.convert(document, "pdf")
    assert not Path(runner.calls[0]["args"][1]).exists()


def test_manifest_output_file_is_not_passed_to_the_converter(content_tree: Path) -> None:
    runner = RecordingRunner()
    service = ConversionService(runner)  # type: ignore[arg-type]
    document = _documents(content_tree)["writing-in-pandoc-markdown"]
    document = dataclasses.replace(document, pandoc={**(document.pandoc or {}), "output-file": "out.html"})

    service.convert(document, "html")

    defaults = runner.calls[0]["defaults"]
    assert "output-file" not in defaults
    assert defaults["input-file"] == "content.md"
    assert document.pandoc["output-file"] == "out.html"


def test_text_output_must_be_utf8(content_tree: Path) -> None:
    service = ConversionService(RecordingRunner(output=b"\xff\xfe\xfd"))  # type: ignore[arg-type]
    document = _documents(content_tree)["writing-in-pandoc-markdown"]

    with pytest.raises(EncodingError):
        service.convert(document, "markdown")


@pytest.mark.parametrize("target", ["", "   ", "--lua-filter=x.lua", "html; rm"])
def test_malformed_targets_are_rejected(content_tree: Path, target: str) -> None:
    service = ConversionService(RecordingRunner())  # type: ignore[arg-type]
    document = _documents(content_tree)["writing-in-pandoc-markdown"]

    with pytest.raises(InvalidFormatError):
        service.convert(document, target)


def test_fallback_end_to_end_with_converter_process(
    content_tree: Path, fake_converter: Callable[..., Path]
) -> None:
    service = ConversionService(PandocRunner(pandoc_bin=str(fake_converter())))
    document = _documents(content_tree)["nested"]

    result = service.convert(document, "gfm")

    assert isinstance(result.content, str)
    assert result.content
    assert f"cwd={document.base_dir}" in result.content
    assert "args=-t gfm -d " in result.content
    assert "from: html" in result.content
