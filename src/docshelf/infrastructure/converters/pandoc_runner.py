from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import Sequence

from docshelf.core.config import (
    DEFAULT_CITEPROC_BIN,
    DEFAULT_CONVERTER_TIMEOUT_SECONDS,
    DEFAULT_MAX_CONCURRENT_CONVERSIONS,
    DEFAULT_PANDOC_BIN,
)
from docshelf.core.encoding import decode_utf8
from docshelf.core.errors import ConverterProcessError, ConverterTimeoutError
from docshelf.core.files import scoped_temp_file

logger = logging.getLogger(__name__)


class PandocRunner:
    """Runs pandoc and the citation processor as blocking subprocesses.

    At most ``max_concurrency`` children run at once across all threads.
    """

    def __init__(
        self,
        pandoc_bin: str = DEFAULT_PANDOC_BIN,
        citeproc_bin: str = DEFAULT_CITEPROC_BIN,
        timeout_seconds: float = DEFAULT_CONVERTER_TIMEOUT_SECONDS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENT_CONVERSIONS,
    ) -> None:
        self.pandoc_bin = pandoc_bin
        self.citeproc_bin = citeproc_bin
        self.timeout_seconds = timeout_seconds
        self._slots = threading.BoundedSemaphore(max(1, max_concurrency))

    def run_with_defaults(self, base_dir: Path, args: Sequence[str], defaults_yaml: str) -> bytes:
        with scoped_temp_file(suffix=".yaml", prefix="docshelf-defaults-", content=defaults_yaml) as config_path:
            logger.info("writing pandoc defaults: %s", config_path)
            return self.run(base_dir, ["-d", str(config_path), *args])

    def run(self, base_dir: Path, args: Sequence[str]) -> bytes:
        completed = self._invoke([self.pandoc_bin, *args], cwd=base_dir, label="pandoc")
        return completed.stdout

    def run_citeproc(self, base_dir: Path, bibfile: str) -> str:
        logger.info("running: %s -y %s", self.citeproc_bin, bibfile)
        completed = self._invoke([self.citeproc_bin, "-y", bibfile], cwd=base_dir, label="pandoc-citeproc")
        return decode_utf8(completed.stdout, "pandoc-citeproc output")

    def _invoke(self, cmd: list[str], *, cwd: Path, label: str) -> subprocess.CompletedProcess[bytes]:
        with self._slots:
            try:
                completed = _run(cmd, cwd=cwd, timeout=self.timeout_seconds)
            except subprocess.TimeoutExpired as exc:
                stderr = (exc.stderr or b"").decode("utf-8", errors="replace")
                _log_stderr(label, stderr)
                raise ConverterTimeoutError(
                    f"{label} did not finish within {self.timeout_seconds:.1f}s",
                    stderr=stderr,
                ) from exc
            except OSError as exc:
                raise ConverterProcessError(f"failed to start {label}: {exc}") from exc

        stderr = decode_utf8(completed.stderr, f"{label} stderr")
        _log_stderr(label, stderr)

        if completed.returncode != 0:
            raise ConverterProcessError(
                f"{label} failure (exit={completed.returncode}): {stderr.strip()}",
                stderr=stderr,
            )
        return completed


def _log_stderr(label: str, stderr: str) -> None:
    for line in stderr.splitlines():
        logger.warning("[%s] %s", label, line)


def _run(cmd: list[str], *, cwd: Path, timeout: float) -> subprocess.CompletedProcess[bytes]:
    return subprocess.run(cmd, cwd=cwd, capture_output=True, timeout=timeout, check=False)
