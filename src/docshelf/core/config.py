from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from docshelf.core.errors import ConfigurationError

DEFAULT_MANIFEST_NAME = "build.yaml"
DEFAULT_PANDOC_BIN = "pandoc"
DEFAULT_CITEPROC_BIN = "pandoc-citeproc"
DEFAULT_CONVERTER_TIMEOUT_SECONDS = 120.0
DEFAULT_MAX_CONCURRENT_CONVERSIONS = 4
DEFAULT_WATCH_INTERVAL_SECONDS = 1.0


@dataclass(frozen=True)
class AppSettings:
    content_dir: Path
    manifest_name: str = DEFAULT_MANIFEST_NAME
    pandoc_bin: str = DEFAULT_PANDOC_BIN
    citeproc_bin: str = DEFAULT_CITEPROC_BIN
    converter_timeout_seconds: float = DEFAULT_CONVERTER_TIMEOUT_SECONDS
    max_concurrent_conversions: int = DEFAULT_MAX_CONCURRENT_CONVERSIONS
    watch_enabled: bool = True
    watch_interval_seconds: float = DEFAULT_WATCH_INTERVAL_SECONDS


def load_settings(content_dir: Path | None = None) -> AppSettings:
    """Build settings from ``DOCSHELF_*`` environment variables.

    An explicit ``content_dir`` wins over ``DOCSHELF_CONTENT_DIR``; the
    working directory is the last resort.
    """
    if content_dir is None:
        env_dir = os.getenv("DOCSHELF_CONTENT_DIR")
        content_dir = Path(env_dir) if env_dir else Path.cwd()
    root = content_dir.expanduser().resolve()

    manifest_name = (os.getenv("DOCSHELF_MANIFEST_NAME") or DEFAULT_MANIFEST_NAME).strip()
    if not manifest_name or "/" in manifest_name or "\\" in manifest_name:
        raise ConfigurationError(f"Invalid manifest file name: {manifest_name!r}")

    return AppSettings(
        content_dir=root,
        manifest_name=manifest_name,
        pandoc_bin=(os.getenv("DOCSHELF_PANDOC_BIN") or DEFAULT_PANDOC_BIN).strip(),
        citeproc_bin=(os.getenv("DOCSHELF_CITEPROC_BIN") or DEFAULT_CITEPROC_BIN).strip(),
        converter_timeout_seconds=_read_float_env(
            "DOCSHELF_CONVERTER_TIMEOUT_SECONDS",
            DEFAULT_CONVERTER_TIMEOUT_SECONDS,
        ),
        max_concurrent_conversions=_read_int_env(
            "DOCSHELF_MAX_CONCURRENT_CONVERSIONS",
            DEFAULT_MAX_CONCURRENT_CONVERSIONS,
        ),
        watch_enabled=_read_bool_env("DOCSHELF_WATCH", True),
        watch_interval_seconds=_read_float_env(
            "DOCSHELF_WATCH_INTERVAL_SECONDS",
            DEFAULT_WATCH_INTERVAL_SECONDS,
        ),
    )


def _read_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _read_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default
