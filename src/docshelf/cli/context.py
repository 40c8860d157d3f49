from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console

from docshelf.application.services.document_service import DocumentService
from docshelf.core.config import AppSettings
from docshelf.core.errors import SourcingError


@dataclass(slots=True)
class CLIContext:
    settings: AppSettings
    console: Console

    def indexed_service(self) -> DocumentService:
        service = DocumentService.from_settings(self.settings)
        if not service.store.rebuild(self.settings.content_dir):
            raise SourcingError(f"Unable to index content directory: {self.settings.content_dir}")
        return service
