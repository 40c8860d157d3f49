from __future__ import annotations

import logging
from typing import Any

import yaml

from docshelf.core.errors import CitationParseError
from docshelf.domain.models.citation import Citation, CitationAuthor, CitationIssued
from docshelf.domain.models.document import Document
from docshelf.infrastructure.converters.pandoc_runner import PandocRunner

logger = logging.getLogger(__name__)


class CitationService:
    def __init__(self, runner: PandocRunner) -> None:
        self.runner = runner

    def citations(self, document: Document) -> list[Citation] | None:
        if not document.bibliography:
            return None
        output = self.runner.run_citeproc(document.base_dir, document.bibliography)
        citations = parse_citations(output)
        logger.info("resolved %s citation(s) for %s", len(citations), document.slug)
        return citations


def parse_citations(text: str) -> list[Citation]:
    """Parse the YAML ``references:`` document written by ``pandoc-citeproc -y``."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CitationParseError(f"Citation output is not valid YAML: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("references"), list):
        raise CitationParseError("Citation output must be a mapping with a 'references' list")

    return [_parse_citation(entry, index) for index, entry in enumerate(data["references"])]


def _parse_citation(entry: Any, index: int) -> Citation:
    if not isinstance(entry, dict):
        raise CitationParseError(f"Reference #{index} is not a mapping")
    cite_id = _text(entry.get("id"))
    if not cite_id:
        raise CitationParseError(f"Reference #{index} has no id")

    return Citation(
        id=cite_id,
        title=_text(entry.get("title")),
        author=_parse_authors(entry.get("author"), cite_id),
        container_title=_text(entry.get("container-title")),
        publisher=_text(entry.get("publisher")),
        volume=_text(entry.get("volume")),
        issue=_text(entry.get("issue")),
        issued=_parse_issued(entry.get("issued"), cite_id),
        url=_text(entry.get("URL")),
        doi=_text(entry.get("DOI")),
    )


def _parse_authors(value: Any, cite_id: str) -> tuple[CitationAuthor, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise CitationParseError(f"'author' of {cite_id} must be a list")
    authors: list[CitationAuthor] = []
    for item in value:
        if not isinstance(item, dict):
            raise CitationParseError(f"Author entries of {cite_id} must be mappings")
        authors.append(CitationAuthor(family=_text(item.get("family")), given=_text(item.get("given"))))
    return tuple(authors)


def _parse_issued(value: Any, cite_id: str) -> tuple[CitationIssued, ...] | None:
    if value is None:
        return None
    # CSL-JSON style: {"date-parts": [[2020, 5], ...]}
    if isinstance(value, dict) and "date-parts" in value:
        parts = value["date-parts"]
        if not isinstance(parts, list) or not all(isinstance(part, list) for part in parts):
            raise CitationParseError(f"'issued.date-parts' of {cite_id} must be a list of lists")
        return tuple(
            CitationIssued(
                year=_int(part[0] if len(part) > 0 else None, cite_id),
                month=_int(part[1] if len(part) > 1 else None, cite_id),
            )
            for part in parts
        )
    if not isinstance(value, list):
        raise CitationParseError(f"'issued' of {cite_id} must be a list")
    issued: list[CitationIssued] = []
    for item in value:
        if not isinstance(item, dict):
            raise CitationParseError(f"Issued entries of {cite_id} must be mappings")
        issued.append(
            CitationIssued(year=_int(item.get("year"), cite_id), month=_int(item.get("month"), cite_id))
        )
    return tuple(issued)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise CitationParseError(f"Expected a scalar citation field, got {type(value).__name__}")
    text = str(value).strip()
    return text or None


def _int(value: Any, cite_id: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise CitationParseError(f"Invalid date part {value!r} in {cite_id}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise CitationParseError(f"Invalid date part {value!r} in {cite_id}") from exc
