from __future__ import annotations

import sys
import textwrap
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml


def write_manifest(folder: Path, manifest: dict[str, Any] | str) -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / "build.yaml"
    if isinstance(manifest, str):
        path.write_text(manifest, encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(manifest, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def content_tree(tmp_path: Path) -> Path:
    """Three documents shaped like a small blog, one of them nested two levels deep."""
    root = tmp_path / "content"

    markdown_dir = root / "markdown"
    write_manifest(
        markdown_dir,
        {
            "format": "commonmark",
            "title": "Writing in Markdown",
            "date": "2020-01-01",
            "description": "How to write posts in plain CommonMark.",
            "tags": ["writing", "markdown", "writing"],
            "authors": [{"name": "Ada Lovelace", "email": "ada@example.org"}],
            "commonmark": {"path": "content.md"},
        },
    )
    (markdown_dir / "content.md").write_text("# Hello\n\nI love caramels tootsie roll.\n", encoding="utf-8")
    (markdown_dir / "assets").mkdir()
    (markdown_dir / "assets" / "hello-md.png").write_bytes(b"\x89PNG fake")

    pandoc_dir = root / "markdown-pandoc"
    write_manifest(
        pandoc_dir,
        {
            "format": "pandoc",
            "title": "Writing in Pandoc Markdown",
            "date": "2021-06-01",
            "bibliography": "references.bib",
            "pandoc": {"input-file": "content.md", "metadata": {"title": "Custom Title"}},
        },
    )
    (pandoc_dir / "content.md").write_text("Some *pandoc* text.\n", encoding="utf-8")

    nested_dir = root / "2020" / "june" / "nested-post"
    write_manifest(
        nested_dir,
        {
            "format": "commonmark",
            "title": "Nested Post",
            "date": "2020-06-01",
            "slug": "nested",
            "draft": True,
            "commonmark": {"path": "post.md"},
        },
    )
    (nested_dir / "post.md").write_text("Nested *body*.\n", encoding="utf-8")

    return root


@pytest.fixture
def fake_converter(tmp_path: Path) -> Callable[..., Path]:
    """Write an executable that mimics the pandoc CLI contract closely enough for tests."""

    def _make(name: str = "fake-pandoc", *, exit_code: int = 0, stdout: bytes | None = None) -> Path:
        script = tmp_path / "bin" / name
        script.parent.mkdir(parents=True, exist_ok=True)
        body = textwrap.dedent(
            f"""\
            #!{sys.executable}
            import os
            import sys

            args = sys.argv[1:]
            sys.stderr.write("[WARNING] fake converter warning\\n")
            sys.stderr.write("second line\\n")
            if {exit_code!r} != 0:
                sys.exit({exit_code!r})
            canned = {stdout!r}
            if canned is not None:
                sys.stdout.buffer.write(canned)
                sys.exit(0)
            if "-o" in args:
                with open(args[args.index("-o") + 1], "wb") as handle:
                    handle.write(b"%PDF-1.4 fake")
                sys.exit(0)
            out = ["cwd=" + os.getcwd(), "args=" + " ".join(args)]
            if "-d" in args:
                with open(args[args.index("-d") + 1], encoding="utf-8") as handle:
                    out.append(handle.read())
            sys.stdout.write("\\n".join(out))
            """
        )
        script.write_text(body, encoding="utf-8")
        script.chmod(0o755)
        return script

    return _make
