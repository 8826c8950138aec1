from .query import Binary, Leaf, Operator, Query, context_snippet, evaluate, parse_query, search

__all__ = [
    "Binary",
    "Leaf",
    "Operator",
    "Query",
    "context_snippet",
    "evaluate",
    "parse_query",
    "search",
]
