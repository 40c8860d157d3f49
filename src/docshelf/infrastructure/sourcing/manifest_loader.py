from __future__ import annotations

import re
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from docshelf.core.errors import DateValidationError, ManifestParseError
from docshelf.domain.models.document import Author, Document, FormatKind, MarkdownConfig

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_FORMAT_ALIASES = {
    "commonmark": FormatKind.COMMONMARK,
    "markdown": FormatKind.COMMONMARK,
    "pandoc": FormatKind.PANDOC,
}
_REQUIRED_KEYS = ("format", "title", "date")
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _ManifestLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamps as strings so dates are validated here."""


_ManifestLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_manifest(manifest_path: Path) -> Document:
    """Parse one manifest file into a Document rooted at the manifest's folder.

    Assets are not resolved here; the sourcing service attaches them.
    """
    try:
        raw = manifest_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestParseError(f"Unable to read manifest {manifest_path}: {exc}") from exc

    try:
        data = yaml.load(raw, Loader=_ManifestLoader)
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        raise ManifestParseError(f"Invalid YAML in {manifest_path}: {exc}") from exc

    return parse_manifest(data, manifest_path)


def parse_manifest(data: Any, manifest_path: Path) -> Document:
    if not isinstance(data, dict):
        raise ManifestParseError(f"Manifest {manifest_path} must be a mapping")

    missing = [key for key in _REQUIRED_KEYS if _is_blank(data.get(key))]
    if missing:
        raise ManifestParseError(f"Manifest {manifest_path} is missing required keys: {', '.join(missing)}")

    format_raw = str(data["format"]).strip().lower()
    format_kind = _FORMAT_ALIASES.get(format_raw)
    if format_kind is None:
        raise ManifestParseError(f"Unknown format {data['format']!r} in {manifest_path}")

    markdown_raw = data.get("commonmark", data.get("markdown"))
    pandoc_raw = data.get("pandoc")
    if pandoc_raw is not None:
        if not isinstance(pandoc_raw, dict):
            raise ManifestParseError(f"'pandoc' must be a mapping in {manifest_path}")
        _check_string_keys(pandoc_raw, manifest_path, "pandoc")

    return Document(
        format=format_kind,
        title=_optional_str(data["title"], "title", manifest_path) or "",
        date=parse_document_date(data["date"], manifest_path),
        base_dir=manifest_path.parent.resolve(),
        manifest_path=manifest_path.resolve(),
        declared_slug=_optional_str(data.get("slug"), "slug", manifest_path),
        declared_id=_optional_str(data.get("id"), "id", manifest_path),
        description=_optional_str(data.get("description"), "description", manifest_path),
        url=_optional_str(data.get("url"), "url", manifest_path),
        draft=_parse_draft(data.get("draft"), manifest_path),
        tags=_parse_tags(data.get("tags"), manifest_path),
        authors=_parse_authors(data.get("authors"), manifest_path),
        bibtex=_optional_str(data.get("bibtex"), "bibtex", manifest_path),
        bibliography=_optional_str(data.get("bibliography"), "bibliography", manifest_path),
        commonmark=_parse_markdown_config(markdown_raw, manifest_path),
        pandoc=pandoc_raw,
    )


def parse_document_date(value: Any, manifest_path: Path) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not _ISO_DATE_RE.match(text):
        raise DateValidationError(f"Date {text!r} in {manifest_path} is not in YYYY-MM-DD form")
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise DateValidationError(f"Date {text!r} in {manifest_path} is not a calendar date") from exc


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _optional_str(value: Any, key: str, manifest_path: Path) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ManifestParseError(f"'{key}' must be a scalar in {manifest_path}")
    text = str(value).strip()
    return text or None


def _parse_draft(value: Any, manifest_path: Path) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ManifestParseError(f"'draft' must be a boolean in {manifest_path}")
    return value


def _parse_tags(value: Any, manifest_path: Path) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ManifestParseError(f"'tags' must be a list in {manifest_path}")
    seen: dict[str, None] = {}
    for item in value:
        if isinstance(item, (dict, list)) or item is None:
            raise ManifestParseError(f"Tag values must be strings in {manifest_path}")
        tag = str(item).strip()
        if tag:
            seen.setdefault(tag, None)
    return tuple(seen)


def _parse_authors(value: Any, manifest_path: Path) -> tuple[Author, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ManifestParseError(f"'authors' must be a list in {manifest_path}")
    authors: list[Author] = []
    for item in value:
        if not isinstance(item, dict):
            raise ManifestParseError(f"Each author must be a mapping in {manifest_path}")
        name = _optional_str(item.get("name"), "authors.name", manifest_path)
        if not name:
            raise ManifestParseError(f"Author without a name in {manifest_path}")
        authors.append(
            Author(
                name=name,
                email=_optional_str(item.get("email"), "authors.email", manifest_path),
                url=_optional_str(item.get("url"), "authors.url", manifest_path),
                affiliation=_optional_str(item.get("affiliation"), "authors.affiliation", manifest_path),
                affiliation_url=_optional_str(
                    item.get("affiliation_url"), "authors.affiliation_url", manifest_path
                ),
            )
        )
    return tuple(authors)


def _parse_markdown_config(value: Any, manifest_path: Path) -> MarkdownConfig | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ManifestParseError(f"'commonmark' must be a mapping in {manifest_path}")
    path = _optional_str(value.get("path"), "commonmark.path", manifest_path)
    if not path:
        raise ManifestParseError(f"'commonmark.path' is required in {manifest_path}")
    return MarkdownConfig(path=path)


def _check_string_keys(node: Any, manifest_path: Path, where: str) -> None:
    if isinstance(node, dict):
        for key, child in node.items():
            if not isinstance(key, str):
                raise ManifestParseError(f"Non-string key {key!r} under '{where}' in {manifest_path}")
            _check_string_keys(child, manifest_path, f"{where}.{key}")
    elif isinstance(node, list):
        for child in node:
            _check_string_keys(child, manifest_path, where)
