from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any

from docshelf.core.slugs import slugify


class FormatKind(str, Enum):
    COMMONMARK = "commonmark"
    PANDOC = "pandoc"


@dataclass(frozen=True, slots=True)
class Author:
    name: str
    email: str | None = None
    url: str | None = None
    affiliation: str | None = None
    affiliation_url: str | None = None


@dataclass(frozen=True, slots=True)
class Asset:
    path: str
    absolute_path: Path


@dataclass(frozen=True, slots=True)
class MarkdownConfig:
    path: str


@dataclass(frozen=True, slots=True)
class Document:
    format: FormatKind
    title: str
    date: date
    base_dir: Path
    manifest_path: Path
    declared_slug: str | None = None
    declared_id: str | None = None
    description: str | None = None
    url: str | None = None
    draft: bool = False
    tags: tuple[str, ...] = ()
    authors: tuple[Author, ...] = ()
    bibtex: str | None = None
    bibliography: str | None = None
    commonmark: MarkdownConfig | None = None
    pandoc: dict[str, Any] | None = None
    assets: tuple[Asset, ...] = field(default_factory=tuple)

    @property
    def slug(self) -> str:
        return self.declared_slug or slugify(self.title)

    @property
    def id(self) -> str:
        return self.declared_id or self.slug
