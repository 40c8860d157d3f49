from __future__ import annotations

import base64
import logging
import mimetypes
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from docshelf.application.services.document_service import DocumentService
from docshelf.application.services.document_store import DocumentStore
from docshelf.application.services.watch_service import DirectoryWatcher
from docshelf.core.config import AppSettings
from docshelf.core.errors import ConversionError, ConverterTimeoutError, InvalidFormatError, NotFoundError
from docshelf.domain.models.citation import Citation
from docshelf.domain.models.document import Document

logger = logging.getLogger(__name__)

API_VERSION = "1.0"


class ConvertRequest(BaseModel):
    format: str


def document_payload(document: Document) -> dict[str, Any]:
    return {
        "id": document.id,
        "slug": document.slug,
        "format": document.format.value,
        "title": document.title,
        "date": document.date.isoformat(),
        "description": document.description,
        "url": document.url,
        "draft": document.draft,
        "tags": list(document.tags),
        "authors": [
            {
                "name": author.name,
                "email": author.email,
                "url": author.url,
                "affiliation": author.affiliation,
                "affiliation_url": author.affiliation_url,
            }
            for author in document.authors
        ],
        "bibtex": document.bibtex,
        "bibliography": document.bibliography,
        "assets": [asset.path for asset in document.assets],
    }


def citation_payload(citation: Citation) -> dict[str, Any]:
    return {
        "id": citation.id,
        "title": citation.title,
        "author": (
            [{"family": author.family, "given": author.given} for author in citation.author]
            if citation.author is not None
            else None
        ),
        "container_title": citation.container_title,
        "publisher": citation.publisher,
        "volume": citation.volume,
        "issue": citation.issue,
        "issued": (
            [{"year": part.year, "month": part.month} for part in citation.issued]
            if citation.issued is not None
            else None
        ),
        "url": citation.url,
        "doi": citation.doi,
    }


def create_app(
    settings: AppSettings,
    *,
    store: DocumentStore | None = None,
    cors: bool = False,
    service: DocumentService | None = None,
) -> FastAPI:
    service = service or DocumentService.from_settings(settings, store=store)
    store = service.store
    store.rebuild(settings.content_dir)

    watcher: DirectoryWatcher | None = None
    if settings.watch_enabled:
        watcher = DirectoryWatcher(
            settings.content_dir,
            on_change=lambda: store.rebuild(settings.content_dir),
            interval_seconds=settings.watch_interval_seconds,
        )

    app = FastAPI(title="docshelf", version=API_VERSION)
    app.state.service = service
    app.state.watcher = watcher
    if cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["OPTIONS", "GET", "POST", "DELETE"],
            allow_headers=["Content-Type"],
        )

    @app.on_event("startup")
    def _start_watcher() -> None:
        if watcher is not None:
            watcher.start()

    @app.on_event("shutdown")
    def _stop_watcher() -> None:
        if watcher is not None:
            watcher.stop()

    def _lookup(slug: str) -> Document:
        try:
            return service.get_document(slug)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    def _conversion_failure(exc: ConversionError) -> HTTPException:
        if isinstance(exc, ConverterTimeoutError):
            return HTTPException(status_code=504, detail=str(exc))
        return HTTPException(status_code=502, detail=str(exc))

    @app.get("/api/version")
    def api_version() -> dict[str, Any]:
        return {"api_version": API_VERSION}

    @app.get("/api/index/status")
    def index_status() -> dict[str, Any]:
        generation = store.generation
        return {
            "generation": generation.number,
            "built_at": generation.built_at,
            "base_path": str(generation.base_path) if generation.base_path else None,
            "count": len(generation.documents),
            "issues": [
                {"manifest_path": str(issue.manifest_path), "kind": issue.kind, "message": issue.message}
                for issue in generation.issues
            ],
        }

    @app.post("/api/index/rebuild")
    def index_rebuild() -> dict[str, Any]:
        ok = store.rebuild(settings.content_dir)
        generation = store.generation
        return {"ok": ok, "generation": generation.number, "count": len(generation.documents)}

    @app.get("/api/documents")
    def list_documents(
        include_drafts: bool = Query(default=True),
        limit: int | None = Query(default=None, ge=1),
    ) -> dict[str, Any]:
        documents = service.list_documents(include_drafts=include_drafts)
        if limit is not None:
            documents = documents[:limit]
        return {"count": len(documents), "documents": [document_payload(doc) for doc in documents]}

    @app.get("/api/documents/{slug}")
    def get_document(slug: str) -> dict[str, Any]:
        return {"document": document_payload(_lookup(slug))}

    @app.get("/api/documents/{slug}/html")
    def render_html(slug: str) -> dict[str, Any]:
        document = _lookup(slug)
        try:
            html = service.render_html(document)
        except ConversionError as exc:
            raise _conversion_failure(exc) from exc
        return {"slug": document.slug, "html": html}

    @app.get("/api/documents/{slug}/convert")
    def convert(slug: str, format: str = Query(..., min_length=1)) -> dict[str, Any]:
        return _convert(slug, format)

    @app.post("/api/documents/{slug}/convert")
    def convert_post(slug: str, request: ConvertRequest) -> dict[str, Any]:
        return _convert(slug, request.format)

    def _convert(slug: str, format: str) -> dict[str, Any]:
        document = _lookup(slug)
        try:
            result = service.convert(document, format)
        except InvalidFormatError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ConversionError as exc:
            raise _conversion_failure(exc) from exc
        if isinstance(result.content, bytes):
            return {
                "slug": document.slug,
                "format": result.format,
                "encoding": "base64",
                "content": base64.b64encode(result.content).decode("ascii"),
            }
        return {"slug": document.slug, "format": result.format, "encoding": "utf-8", "content": result.content}

    @app.get("/api/documents/{slug}/citations")
    def citations(slug: str) -> dict[str, Any]:
        document = _lookup(slug)
        try:
            found = service.citations(document)
        except ConversionError as exc:
            raise _conversion_failure(exc) from exc
        return {
            "slug": document.slug,
            "citations": [citation_payload(citation) for citation in found] if found is not None else None,
        }

    @app.get("/api/documents/{slug}/assets/{name:path}")
    def read_asset(slug: str, name: str) -> Response:
        document = _lookup(slug)
        data = service.read_asset(document, name)
        if data is None:
            raise HTTPException(status_code=404, detail=f"Asset not found: {name}")
        media_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        return Response(content=data, media_type=media_type)

    return app
