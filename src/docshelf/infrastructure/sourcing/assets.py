from __future__ import annotations

import os
from pathlib import Path

from docshelf.core.errors import AssetTraversalError
from docshelf.domain.models.document import Asset

ASSETS_DIRNAME = "assets"


def assets_root(base_dir: Path) -> Path:
    return base_dir / ASSETS_DIRNAME


def source_assets(base_dir: Path) -> list[Asset]:
    """List every file under ``base_dir/assets`` relative to that folder."""
    root = assets_root(base_dir)
    if not root.is_dir():
        return []

    def _raise(exc: OSError) -> None:
        raise exc

    assets: list[Asset] = []
    try:
        for current, dirnames, filenames in os.walk(root, onerror=_raise):
            dirnames.sort()
            current_dir = Path(current)
            for filename in sorted(filenames):
                file_path = current_dir / filename
                if not file_path.is_file():
                    continue
                assets.append(
                    Asset(
                        path=file_path.relative_to(root).as_posix(),
                        absolute_path=file_path.resolve(),
                    )
                )
    except OSError as exc:
        raise AssetTraversalError(f"Unable to walk assets under {root}: {exc}") from exc

    assets.sort(key=lambda asset: asset.path)
    return assets
