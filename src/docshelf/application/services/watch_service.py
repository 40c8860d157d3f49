from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Callable

from docshelf.core.config import DEFAULT_WATCH_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

Fingerprint = frozenset[tuple[str, int, int]]


def fingerprint_tree(root: Path) -> Fingerprint:
    """Snapshot ``(relative path, mtime_ns, size)`` for every file under root."""
    entries: set[tuple[str, int, int]] = set()
    if not root.is_dir():
        return frozenset()
    for current, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            path = Path(current) / filename
            try:
                stat = path.stat()
            except OSError:
                # Removed between listing and stat; the next poll sees the removal.
                continue
            entries.add((path.relative_to(root).as_posix(), stat.st_mtime_ns, stat.st_size))
    return frozenset(entries)


class DirectoryWatcher:
    """Polls a directory tree on a daemon thread and calls back on change."""

    def __init__(
        self,
        root: Path,
        on_change: Callable[[], object],
        interval_seconds: float = DEFAULT_WATCH_INTERVAL_SECONDS,
    ) -> None:
        self.root = root
        self.on_change = on_change
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._last = fingerprint_tree(root)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        logger.info("watching %s", self.root)
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="docshelf-watcher")
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=max(2.0, self.interval_seconds * 2))
        self._thread = None

    def poll_once(self) -> bool:
        current = fingerprint_tree(self.root)
        if current == self._last:
            return False
        self._last = current
        logger.info("file change detected under %s, rebuilding index", self.root)
        try:
            self.on_change()
        except Exception:
            logger.exception("change callback failed for %s", self.root)
        return True

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.poll_once()
            except OSError as exc:
                logger.warning("watch error under %s: %s", self.root, exc)
