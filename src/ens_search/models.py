from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Placeholder label until ENS reverse resolution is wired in.
UNRESOLVED_NAME = "???"


class Occurrence(BaseModel):
    """One appearance of a word at a token position within one document."""

    model_config = ConfigDict(frozen=True)

    source_name: str = UNRESOLVED_NAME
    content_id: str
    position: int = Field(ge=0)


class QueryResult(BaseModel):
    """A matching document plus the tokens around the hit."""

    model_config = ConfigDict(frozen=True)

    source_name: str
    content_id: str
    context_snippet: str
