from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from docshelf.application.services.sourcing_service import (
    SourcingIssue,
    SourcingReport,
    source_from_directory,
)
from docshelf.core.errors import NotFoundError, SourcingError
from docshelf.domain.models.document import Document

logger = logging.getLogger(__name__)

Sourcer = Callable[[Path], SourcingReport]


@dataclass(frozen=True, slots=True)
class Generation:
    number: int
    documents: tuple[Document, ...]
    issues: tuple[SourcingIssue, ...]
    built_at: str | None
    base_path: Path | None


_EMPTY_GENERATION = Generation(number=0, documents=(), issues=(), built_at=None, base_path=None)


class DocumentStore:
    """Holds the current generation of sourced documents.

    Readers grab the current generation reference and work on that immutable
    snapshot. A rebuild sources a complete new generation first and only
    takes the swap lock to publish it, so a failed rebuild never disturbs
    what readers see.
    """

    def __init__(self, sourcer: Sourcer | None = None) -> None:
        self._sourcer: Sourcer = sourcer or source_from_directory
        self._generation = _EMPTY_GENERATION
        self._swap_lock = threading.Lock()
        self._rebuild_lock = threading.Lock()

    @property
    def generation(self) -> Generation:
        with self._swap_lock:
            return self._generation

    def rebuild(self, base_path: Path) -> bool:
        with self._rebuild_lock:
            try:
                report = self._sourcer(base_path)
            except (SourcingError, OSError) as exc:
                logger.warning("failed to source documents from %s: %s", base_path, exc)
                return False

            _warn_slug_collisions(report.documents)
            with self._swap_lock:
                generation = Generation(
                    number=self._generation.number + 1,
                    documents=tuple(report.documents),
                    issues=tuple(report.issues),
                    built_at=datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
                    base_path=Path(base_path),
                )
                self._generation = generation

        logger.info(
            "index generation %s ready: %s document(s), %s issue(s)",
            generation.number,
            len(generation.documents),
            len(generation.issues),
        )
        return True

    def list(self, *, sort_by_date: bool = True, include_drafts: bool = True) -> list[Document]:
        documents = [
            document for document in self.generation.documents if include_drafts or not document.draft
        ]
        if sort_by_date:
            # sorted() is stable with reverse=True, so equal dates keep discovery order.
            documents = sorted(documents, key=lambda document: document.date, reverse=True)
        return documents

    def find_by_slug(self, slug: str) -> Document:
        for document in self.generation.documents:
            if document.slug == slug:
                return document
        raise NotFoundError(f"Document not found: {slug}")

    def get(self, slug_or_id: str) -> Document:
        documents = self.generation.documents
        for document in documents:
            if document.slug == slug_or_id:
                return document
        for document in documents:
            if document.id == slug_or_id:
                return document
        raise NotFoundError(f"Document not found: {slug_or_id}")


def _warn_slug_collisions(documents: list[Document]) -> None:
    counts = Counter(document.slug for document in documents)
    for slug, count in counts.items():
        if count > 1:
            winner = next(document for document in documents if document.slug == slug)
            logger.warning(
                "slug %r is shared by %s documents; lookups resolve to %s",
                slug,
                count,
                winner.manifest_path,
            )
