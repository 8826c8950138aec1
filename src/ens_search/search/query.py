"""Boolean keyword queries over a SearchIndex.

A query string is split recursively into a tree of AND/OR nodes:

- a single word, or a string wrapped in double quotes, is a leaf and is
  looked up literally (quotes included);
- otherwise the first standalone AND that is neither the first nor the
  last word splits the query, then the first such OR;
- with no connector at all, the first word is OR-ed with the rest.

Evaluation maps leaves to result sets and combines them with set
intersection (AND) or union (OR). Results are unordered.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from ens_search.errors import QuerySyntaxError
from ens_search.index.store import SearchIndex
from ens_search.models import QueryResult

logger = logging.getLogger(__name__)

CONTEXT_WINDOW = 5


class Operator(enum.Enum):
    AND = "AND"
    OR = "OR"


@dataclass(frozen=True, slots=True)
class Leaf:
    term: str


@dataclass(frozen=True, slots=True)
class Binary:
    op: Operator
    left: Query
    right: Query


Query = Leaf | Binary


def _split_at(words: list[str], connector: Operator) -> Binary | None:
    for i, word in enumerate(words):
        if word.upper() == connector.value and 0 < i < len(words) - 1:
            return Binary(
                connector,
                parse_query(" ".join(words[:i])),
                parse_query(" ".join(words[i + 1 :])),
            )
    return None


def parse_query(text: str) -> Query:
    words = text.split()
    if not words:
        raise QuerySyntaxError("empty query")

    stripped = text.strip()
    if len(words) == 1:
        return Leaf(words[0])
    if stripped.startswith('"') and stripped.endswith('"'):
        return Leaf(stripped)

    for connector in (Operator.AND, Operator.OR):
        node = _split_at(words, connector)
        if node is not None:
            return node

    return Binary(Operator.OR, Leaf(words[0]), parse_query(" ".join(words[1:])))


def context_snippet(tokens: list[str], position: int, window: int = CONTEXT_WINDOW) -> str:
    start = max(0, position - window)
    end = min(len(tokens), position + window + 1)
    return " ".join(tokens[start:end])


def _evaluate_leaf(term: str, index: SearchIndex, window: int) -> set[QueryResult]:
    results: set[QueryResult] = set()
    for occ in index.lookup(term):
        tokens = index.document(occ.content_id)
        if tokens is None:
            logger.warning("Occurrence of %r points at unknown document %s", term, occ.content_id)
            continue
        results.add(
            QueryResult(
                source_name=occ.source_name,
                content_id=occ.content_id,
                context_snippet=context_snippet(tokens, occ.position, window),
            )
        )
    return results


def evaluate(query: Query, index: SearchIndex, *, window: int = CONTEXT_WINDOW) -> set[QueryResult]:
    if isinstance(query, Leaf):
        return _evaluate_leaf(query.term, index, window)

    left = evaluate(query.left, index, window=window)
    right = evaluate(query.right, index, window=window)
    if query.op is Operator.AND:
        return left & right
    return left | right


def search(text: str, index: SearchIndex, *, window: int = CONTEXT_WINDOW) -> set[QueryResult]:
    """Evaluate a free-text query; a blank query matches nothing."""
    try:
        query = parse_query(text)
    except QuerySyntaxError:
        return set()
    return evaluate(query, index, window=window)
