from __future__ import annotations

import logging
from pathlib import Path

from docshelf.application.services.citation_service import CitationService
from docshelf.application.services.conversion_service import ConversionResult, ConversionService
from docshelf.application.services.document_store import DocumentStore
from docshelf.application.services.sourcing_service import SourcingReport, source_from_directory
from docshelf.core.config import AppSettings
from docshelf.domain.models.citation import Citation
from docshelf.domain.models.document import Document
from docshelf.infrastructure.converters.pandoc_runner import PandocRunner

logger = logging.getLogger(__name__)


class DocumentService:
    """Query surface used by the web API and the CLI."""

    def __init__(
        self,
        store: DocumentStore,
        conversion_service: ConversionService,
        citation_service: CitationService,
    ) -> None:
        self.store = store
        self.conversion_service = conversion_service
        self.citation_service = citation_service

    @classmethod
    def from_settings(cls, settings: AppSettings, store: DocumentStore | None = None) -> DocumentService:
        runner = PandocRunner(
            pandoc_bin=settings.pandoc_bin,
            citeproc_bin=settings.citeproc_bin,
            timeout_seconds=settings.converter_timeout_seconds,
            max_concurrency=settings.max_concurrent_conversions,
        )
        return cls(
            store=store or build_store(settings),
            conversion_service=ConversionService(runner),
            citation_service=CitationService(runner),
        )

    def list_documents(self, *, include_drafts: bool = True) -> list[Document]:
        return self.store.list(sort_by_date=True, include_drafts=include_drafts)

    def get_document(self, slug_or_id: str) -> Document:
        return self.store.get(slug_or_id)

    def render_html(self, document: Document) -> str:
        return self.conversion_service.render_html(document)

    def convert(self, document: Document, target: str) -> ConversionResult:
        return self.conversion_service.convert(document, target)

    def citations(self, document: Document) -> list[Citation] | None:
        return self.citation_service.citations(document)

    def read_asset(self, document: Document, name: str) -> bytes | None:
        for asset in document.assets:
            if asset.path == name:
                try:
                    return asset.absolute_path.read_bytes()
                except FileNotFoundError:
                    logger.warning("asset %s of %s vanished since indexing", name, document.slug)
                    return None
        return None


def build_store(settings: AppSettings) -> DocumentStore:
    def sourcer(base_path: Path) -> SourcingReport:
        return source_from_directory(base_path, settings.manifest_name)

    return DocumentStore(sourcer=sourcer)
