from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from bs4 import BeautifulSoup

from ens_search.models import UNRESOLVED_NAME, Occurrence

logger = logging.getLogger(__name__)

MediaKind = Literal["html", "text"]


@dataclass
class Extraction:
    """One document's local contribution, built without touching shared state."""

    content_id: str
    tokens: list[str]
    occurrences: dict[str, set[Occurrence]] = field(default_factory=dict)


def classify_media_type(content_type: str | None) -> MediaKind | None:
    ct = (content_type or "").lower()
    if "text/html" in ct:
        return "html"
    if "text/plain" in ct or "application/json" in ct:
        return "text"
    return None


def html_body_text(markup: str) -> str:
    """Concatenated text of the <body> element; head text is dropped."""
    # html5lib builds the implied <body> when the tag is omitted
    soup = BeautifulSoup(markup, "html5lib")
    if soup.body is None:
        return ""
    return soup.body.get_text(separator=" ")


def index_tokens(
    content_id: str, tokens: list[str], *, source_name: str = UNRESOLVED_NAME
) -> dict[str, set[Occurrence]]:
    occurrences: dict[str, set[Occurrence]] = {}
    for i, word in enumerate(tokens):
        occurrences.setdefault(word, set()).add(
            Occurrence(source_name=source_name, content_id=content_id, position=i)
        )
    return occurrences


def extract_document(content_id: str, content_type: str | None, body: str) -> Extraction | None:
    """Tokenize a fetched document, or return None for unindexable media types."""
    kind = classify_media_type(content_type)
    if kind is None:
        logger.info("Skipping %s: unsupported content type %r", content_id, content_type)
        return None

    text = html_body_text(body) if kind == "html" else body
    tokens = text.split()
    return Extraction(
        content_id=content_id,
        tokens=tokens,
        occurrences=index_tokens(content_id, tokens),
    )
