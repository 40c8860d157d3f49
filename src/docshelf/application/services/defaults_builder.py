from __future__ import annotations

import copy
from typing import Any

import yaml

from docshelf.core.values import ensure_mapping, insert_if_absent
from docshelf.domain.models.document import Document

METADATA_KEY = "metadata"


def build_converter_defaults(document: Document) -> dict[str, Any]:
    """Merge document metadata into its pandoc overrides without clobbering them.

    Keys the author already set under ``metadata`` always win; the result is
    a fresh tree and ``document.pandoc`` is left untouched.
    """
    config: dict[str, Any] = copy.deepcopy(document.pandoc) if document.pandoc else {}
    metadata = ensure_mapping(config, METADATA_KEY)

    insert_if_absent(metadata, "title", document.title)
    insert_if_absent(metadata, "date", document.date.isoformat())

    if document.description:
        insert_if_absent(metadata, "description", document.description)
        insert_if_absent(metadata, "abstract", document.description)

    if document.authors:
        insert_if_absent(metadata, "author", [author.name for author in document.authors])

    config[METADATA_KEY] = metadata
    return config


def render_defaults_yaml(config: dict[str, Any]) -> str:
    return yaml.safe_dump(config, sort_keys=False, allow_unicode=True, default_flow_style=False)
