from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Iterable
from typing import TextIO

from ens_search.errors import SearchError
from ens_search.models import QueryResult
from ens_search.settings import SearchSettings, settings

logger = logging.getLogger(__name__)


def _configure_logging(cfg: SearchSettings) -> None:
    level = (cfg.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _load(cfg: SearchSettings, *, force_rebuild: bool = False):
    from ens_search.pipeline import load_or_build

    return asyncio.run(load_or_build(cfg, force_rebuild=force_rebuild))


def positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from e
    if n < 1:
        raise argparse.ArgumentTypeError(f"limit must be at least 1, got {n}")
    return n


def format_results(results: Iterable[QueryResult], limit: int) -> list[str]:
    ordered = sorted(results, key=lambda r: (r.content_id, r.context_snippet))
    return [f"{r.content_id}  {r.source_name}  {r.context_snippet}" for r in ordered[:limit]]


def cmd_version(_args: argparse.Namespace) -> int:
    from ens_search import __version__

    print(__version__)
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    _configure_logging(settings)
    index = _load(settings, force_rebuild=args.force)
    print(f"Index has {len(index)} entries across {len(index.docs)} documents")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    _configure_logging(settings)
    from ens_search.search import search

    index = _load(settings)
    results = search(args.query, index, window=settings.context_window)
    limit = settings.max_results if args.limit is None else args.limit
    for line in format_results(results, limit):
        print(line)
    print(f"{len(results)} result(s)", file=sys.stderr)
    return 0


def run_repl(index, *, stdin: TextIO, stdout: TextIO, limit: int, window: int) -> None:
    from ens_search.search import search

    while True:
        stdout.write("search> ")
        stdout.flush()
        line = stdin.readline()
        if not line or not line.strip():
            return
        results = search(line, index, window=window)
        for out in format_results(results, limit):
            print(out, file=stdout)
        print(f"{len(results)} result(s)", file=stdout)


def cmd_repl(args: argparse.Namespace) -> int:
    _configure_logging(settings)
    index = _load(settings, force_rebuild=args.force)
    print(f"Loaded index with {len(index)} entries")
    run_repl(
        index,
        stdin=sys.stdin,
        stdout=sys.stdout,
        limit=settings.max_results,
        window=settings.context_window,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ens-search")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version").set_defaults(func=cmd_version)

    build = sub.add_parser("build", help="Load the saved index or crawl a new one")
    build.add_argument("--force", action="store_true", help="Ignore saved index files")
    build.set_defaults(func=cmd_build)

    query = sub.add_parser("search", help="Run one boolean keyword query")
    query.add_argument("query")
    query.add_argument("--limit", type=positive_int, default=None)
    query.set_defaults(func=cmd_search)

    repl = sub.add_parser("repl", help="Interactive search prompt")
    repl.add_argument("--force", action="store_true", help="Rebuild before prompting")
    repl.set_defaults(func=cmd_repl)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except SearchError as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return 1


def app() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    app()
