from __future__ import annotations

from docshelf.core.errors import EncodingError


def decode_utf8(data: bytes, what: str) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EncodingError(f"{what} is not valid UTF-8: {exc}") from exc
