from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


@contextmanager
def scoped_temp_file(
    *,
    suffix: str = "",
    prefix: str = "docshelf-",
    content: str | bytes | None = None,
) -> Iterator[Path]:
    """Create a named temp file that is removed when the block exits."""
    fd, raw_path = tempfile.mkstemp(suffix=suffix, prefix=prefix)
    path = Path(raw_path)
    try:
        with os.fdopen(fd, "wb") as handle:
            if isinstance(content, str):
                handle.write(content.encode("utf-8"))
            elif content is not None:
                handle.write(content)
        yield path
    finally:
        path.unlink(missing_ok=True)
