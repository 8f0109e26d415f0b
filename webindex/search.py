"""
Search results and query processing.

Ranking (total order used for every result list):
- https:// locations, then http:// locations, then everything else
  (file paths and other schemes); each group is ranked independently by
- score = matches / word count, descending
- word count, descending
- location, ascending and case-insensitive
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from .tokenizer import unique_stems

if TYPE_CHECKING:
    from .inverted_index import InvertedIndex

logger = logging.getLogger(__name__)

HTTPS_CLASS = 0
HTTP_CLASS = 1
OTHER_CLASS = 2


def scheme_class(location: str) -> int:
    """Partition a location into https, http or other."""
    lowered = location.lower()
    if lowered.startswith("https://"):
        return HTTPS_CLASS
    if lowered.startswith("http://"):
        return HTTP_CLASS
    return OTHER_CLASS


@dataclass
class SearchResult:
    """
    A location matched by a query.
    - location: file path or URL
    - word_count: word count of the location when the result was created
    - matches: occurrences of all matching query terms at the location
    """

    location: str
    word_count: int
    matches: int = 0

    @property
    def score(self) -> float:
        return self.matches / self.word_count

    def update(self, matches: int) -> None:
        """Add occurrences of another matching term."""
        self.matches += matches

    def rank_key(self) -> tuple:
        return (
            scheme_class(self.location),
            -self.score,
            -self.word_count,
            self.location.lower(),
        )

    def __lt__(self, other: "SearchResult") -> bool:
        return self.rank_key() < other.rank_key()

    def to_dict(self) -> dict:
        return {
            "count": self.matches,
            "score": round(self.score, 8),
            "where": self.location,
        }


def sort_results(results: Iterable[SearchResult]) -> list[SearchResult]:
    return sorted(results, key=SearchResult.rank_key)


def parse_query(line: str) -> list[str]:
    """
    Clean and stem a raw query line. Stems are unique and sorted, so the
    same query written differently maps to the same key.
    """
    return unique_stems(line)


class QueryProcessor:
    """
    Runs queries against a built index and keeps the ranked results per
    normalized query ("stem1 stem2 ...").
    """

    def __init__(self, index: "InvertedIndex", partial: bool = False) -> None:
        self.index = index
        self.partial = partial
        self.results: dict[str, list[SearchResult]] = {}

    def process_line(self, line: str) -> list[SearchResult] | None:
        """
        Search for one query line. Returns None when the line has no
        searchable words or the same query was already processed.
        """
        stems = parse_query(line)
        if not stems:
            return None
        key = " ".join(stems)
        if key in self.results:
            return None
        ranked = self.index.search(stems, self.partial)
        self.results[key] = ranked
        logger.debug("Query %r: %d results", key, len(ranked))
        return ranked

    def process_file(self, query_path: Path) -> None:
        """Process every line of a query file."""
        with open(query_path, "r", encoding="utf-8") as f:
            for line in f:
                self.process_line(line)
        logger.info("Processed %d queries from %s", len(self.results), query_path)

    def __len__(self) -> int:
        return len(self.results)
