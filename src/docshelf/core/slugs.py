from __future__ import annotations

import re
import unicodedata

_NON_WORD_RE = re.compile(r"[\W_]+")


def _split_camel(word: str) -> list[str]:
    parts: list[str] = []
    start = 0
    for index in range(1, len(word)):
        previous, current = word[index - 1], word[index]
        if current.isupper() and (previous.islower() or previous.isdigit()):
            parts.append(word[start:index])
            start = index
    parts.append(word[start:])
    return parts


def slugify(value: str) -> str:
    """Kebab-case a title: ``"Writing in Markdown"`` -> ``"writing-in-markdown"``.

    Letters outside ASCII are kept, so ``"Über uns"`` becomes ``"über-uns"``.
    """
    text = unicodedata.normalize("NFC", str(value or ""))
    words = [part for word in _NON_WORD_RE.split(text) if word for part in _split_camel(word)]
    return "-".join(word.lower() for word in words)
