"""
JSON output for the index, the word counts and search results.

Everything is written as indented, human-readable JSON with sorted keys;
result lists keep their rank order. Write errors (OSError) are raised to the
caller, which decides whether to report and carry on.
"""

import json
from pathlib import Path
from typing import IO, Any, Mapping, Sequence

from .inverted_index import InvertedIndex
from .search import SearchResult

Destination = str | Path | IO[str]


def write(structure: Any, destination: Destination) -> None:
    """Write a JSON-ready structure to a path or an open text stream."""
    if hasattr(destination, "write"):
        json.dump(structure, destination, indent=2, ensure_ascii=False)
        destination.write("\n")
        return
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(structure, f, indent=2, ensure_ascii=False)
        f.write("\n")


def results_to_dict(results: Mapping[str, Sequence[SearchResult]]) -> dict:
    """Query -> ranked results, queries sorted."""
    return {
        query: [result.to_dict() for result in results[query]]
        for query in sorted(results)
    }


def write_index(index: InvertedIndex, destination: Destination) -> None:
    write(index.to_dict(), destination)


def write_counts(index: InvertedIndex, destination: Destination) -> None:
    write(index.counts_to_dict(), destination)


def write_results(results: Mapping[str, Sequence[SearchResult]], destination: Destination) -> None:
    write(results_to_dict(results), destination)
