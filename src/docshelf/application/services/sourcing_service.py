from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path

from docshelf.core.config import DEFAULT_MANIFEST_NAME
from docshelf.core.errors import SourcingError
from docshelf.domain.models.document import Document
from docshelf.infrastructure.sourcing.assets import assets_root, source_assets
from docshelf.infrastructure.sourcing.manifest_loader import load_manifest

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SourcingIssue:
    manifest_path: Path
    kind: str
    message: str


@dataclass(slots=True)
class SourcingReport:
    documents: list[Document] = field(default_factory=list)
    issues: list[SourcingIssue] = field(default_factory=list)

    @property
    def manifests_seen(self) -> int:
        return len(self.documents) + len(self.issues)


def discover_manifests(base: Path, manifest_name: str = DEFAULT_MANIFEST_NAME) -> list[Path]:
    return sorted(path for path in base.rglob(manifest_name) if path.is_file())


def source_from_directory(base: Path, manifest_name: str = DEFAULT_MANIFEST_NAME) -> SourcingReport:
    """Source one Document per manifest found anywhere under ``base``.

    A bad manifest is reported and skipped; only an unusable ``base`` fails
    the whole call.
    """
    root = Path(base).expanduser()
    if not root.is_dir():
        raise SourcingError(f"Content directory not found: {root}")

    logger.info("sourcing documents from directory: %s", root)
    try:
        manifests = discover_manifests(root, manifest_name)
    except OSError as exc:
        raise SourcingError(f"Unable to scan {root}: {exc}") from exc

    report = SourcingReport()
    for manifest_path in manifests:
        try:
            report.documents.append(source_document(manifest_path))
        except SourcingError as exc:
            logger.warning("skipping %s: %s", manifest_path, exc)
            report.issues.append(
                SourcingIssue(
                    manifest_path=manifest_path,
                    kind=type(exc).__name__,
                    message=str(exc),
                )
            )

    logger.info(
        "sourced %s document(s) from %s manifest(s) under %s",
        len(report.documents),
        report.manifests_seen,
        root,
    )
    return report


def source_document(manifest_path: Path) -> Document:
    document = load_manifest(manifest_path)
    if not assets_root(document.base_dir).is_dir():
        return document
    return dataclasses.replace(document, assets=tuple(source_assets(document.base_dir)))
