from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CitationAuthor:
    family: str | None = None
    given: str | None = None


@dataclass(frozen=True, slots=True)
class CitationIssued:
    year: int | None = None
    month: int | None = None


@dataclass(frozen=True, slots=True)
class Citation:
    """One CSL reference as emitted by the citation processor."""

    id: str
    title: str | None = None
    author: tuple[CitationAuthor, ...] | None = None
    container_title: str | None = None
    publisher: str | None = None
    volume: str | None = None
    issue: str | None = None
    issued: tuple[CitationIssued, ...] | None = None
    url: str | None = None
    doi: str | None = None
