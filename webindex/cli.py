"""
Command-line interface: build an index from a directory or a web crawl,
optionally answer a file of queries, and write the results as JSON.

Usage:
    webindex data/text --index index.json --counts counts.json
    webindex https://example.com/ --pages 20 --query queries.txt --results results.json
    python build_index.py https://example.com/ --pages 5 --interactive

Exit status is 1 for configuration errors (nothing is built or written) and
for output files that could not be written (the other outputs are still
attempted).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Iterable

from .config import (
    CRAWL_ORDERS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_PAGE_BUDGET,
    DEFAULT_TIMEOUT,
    DEFAULT_WORKERS,
    BuildConfig,
)
from .crawler import crawl
from .index_builder import build_index_from_path
from .inverted_index import InvertedIndex
from .output import write_counts, write_index, write_results
from .search import QueryProcessor, parse_query

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webindex",
        description="Build a searchable inverted index from text files or a web crawl.",
    )
    parser.add_argument("seed", help="Directory/file of .txt files, or an http(s) URL to crawl.")
    parser.add_argument(
        "--pages",
        type=int,
        default=DEFAULT_PAGE_BUDGET,
        help=f"Maximum number of pages to index when crawling (default: {DEFAULT_PAGE_BUDGET}).",
    )
    parser.add_argument(
        "--redirects",
        type=int,
        default=DEFAULT_MAX_REDIRECTS,
        help=f"Redirects to follow per page (default: {DEFAULT_MAX_REDIRECTS}).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Socket timeout in seconds (default: {DEFAULT_TIMEOUT:g}).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help="Worker threads for fetching pages or reading files.",
    )
    parser.add_argument(
        "--order",
        choices=CRAWL_ORDERS,
        default="depth",
        help="Crawl order (default: depth).",
    )
    parser.add_argument("--index", type=Path, default=None, help="Write the inverted index to this JSON file.")
    parser.add_argument("--counts", type=Path, default=None, help="Write word counts to this JSON file.")
    parser.add_argument("--query", type=Path, default=None, help="File with one query per line.")
    parser.add_argument("--results", type=Path, default=None, help="Write search results to this JSON file.")
    parser.add_argument("--partial", action="store_true", help="Use partial (prefix) search instead of exact.")
    parser.add_argument("--interactive", action="store_true", help="Prompt for queries after building.")
    parser.add_argument("--top", type=int, default=10, help="Results shown per interactive query.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def config_from_args(args: argparse.Namespace) -> BuildConfig:
    return BuildConfig(
        seed=args.seed,
        page_budget=args.pages,
        max_redirects=args.redirects,
        timeout=args.timeout,
        workers=args.workers,
        order=args.order,
        index_path=args.index,
        counts_path=args.counts,
        query_path=args.query,
        results_path=args.results,
        partial=args.partial,
    )


def build(config: BuildConfig) -> InvertedIndex:
    """Build the index described by config."""
    index = InvertedIndex()
    if config.is_crawl:
        crawl(
            config.seed,
            index,
            page_budget=config.page_budget,
            max_redirects=config.max_redirects,
            timeout=config.timeout,
            workers=config.workers,
            order=config.order,
        )
    else:
        build_index_from_path(Path(config.seed), index, workers=config.workers)
    return index


def _write_output(writer: Callable, data, path: Path, label: str) -> bool:
    try:
        writer(data, path)
    except OSError as e:
        logger.error("Unable to write %s to %s: %s", label, path, e)
        return False
    print(f"{label} saved to: {path}")
    return True


def run_search_loop(index: InvertedIndex, partial: bool = False, top_k: int = 10) -> None:
    """
    Interactive command-line search loop.
    """
    print("Enter queries. Empty line or Ctrl+C to exit.")
    while True:
        try:
            raw_query = input("query> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not raw_query:
            break

        stems = parse_query(raw_query)
        if not stems:
            print("No valid terms in query.")
            continue

        ranked = index.search(stems, partial)
        if not ranked:
            print("No documents matched the query.")
            continue

        print(f"Top {min(top_k, len(ranked))} of {len(ranked)} results:")
        for rank, result in enumerate(ranked[:top_k], start=1):
            print(f"{rank:2d}. score={result.score:.8f}  count={result.matches}  {result.location}")


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.verbose)

    try:
        config = config_from_args(args).validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    index = build(config)
    print(f"Indexed {index.num_locations()} locations, {index.num_words()} unique words.")

    ok = True
    if config.index_path:
        ok &= _write_output(write_index, index, config.index_path, "Index")
    if config.counts_path:
        ok &= _write_output(write_counts, index, config.counts_path, "Word counts")

    processor = QueryProcessor(index, partial=config.partial)
    if config.query_path:
        try:
            processor.process_file(config.query_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Unable to read queries from %s: %s", config.query_path, e)
            ok = False
    if config.results_path:
        ok &= _write_output(write_results, processor.results, config.results_path, "Results")

    if args.interactive:
        run_search_loop(index, partial=config.partial, top_k=args.top)

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
