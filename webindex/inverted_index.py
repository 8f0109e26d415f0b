"""
Positional inverted index.

word -> location -> set of 1-based positions, plus location -> word count
(the highest position seen for that location).

An index is populated by a single owner. Partial indexes built separately
(one per worker, file or page) are combined afterwards with merge().
"""

from bisect import bisect_left
from typing import Iterable, Iterator

from .search import SearchResult, sort_results


class InvertedIndex:
    """
    Inverted index with word counts.
    Positions are only ever added; adding the same (word, location, position)
    twice is a no-op.
    """

    def __init__(self) -> None:
        self._index: dict[str, dict[str, set[int]]] = {}
        self._counts: dict[str, int] = {}
        # Sorted view of the words for prefix scans; rebuilt after new words.
        self._sorted_words: list[str] | None = None

    def add_word(self, word: str, location: str, position: int) -> None:
        """Add one occurrence of word at a 1-based position in location."""
        if position < 1:
            raise ValueError(f"Positions start at 1, got {position} for {location!r}")
        locations = self._index.get(word)
        if locations is None:
            locations = self._index[word] = {}
            self._sorted_words = None
        locations.setdefault(location, set()).add(position)
        if position > self._counts.get(location, 0):
            self._counts[location] = position

    def add_words(self, words: Iterable[str], location: str, start: int = 1) -> None:
        """Add words at consecutive positions beginning with start."""
        for position, word in enumerate(words, start=start):
            self.add_word(word, location, position)

    def merge(self, other: "InvertedIndex") -> None:
        """
        Merge another index into this one.
        Position sets are unioned; word counts of locations present in both
        are summed.
        """
        for word, locations in other._index.items():
            mine = self._index.get(word)
            if mine is None:
                mine = self._index[word] = {}
                self._sorted_words = None
            for location, positions in locations.items():
                mine.setdefault(location, set()).update(positions)
        for location, count in other._counts.items():
            self._counts[location] = self._counts.get(location, 0) + count

    # -- lookups ---------------------------------------------------------

    def get_words(self) -> list[str]:
        return list(self._words_sorted())

    def get_locations(self, word: str | None = None) -> list[str]:
        """Locations containing word, or every indexed location."""
        if word is None:
            return sorted(self._counts)
        return sorted(self._index.get(word, ()))

    def get_positions(self, word: str, location: str) -> list[int]:
        return sorted(self._index.get(word, {}).get(location, ()))

    def get_counts(self) -> dict[str, int]:
        return dict(self._counts)

    def get_count(self, location: str) -> int:
        return self._counts.get(location, 0)

    def has_word(self, word: str) -> bool:
        return word in self._index

    def has_location(self, location: str, word: str | None = None) -> bool:
        if word is None:
            return location in self._counts
        return location in self._index.get(word, {})

    def has_position(self, word: str, location: str, position: int) -> bool:
        return position in self._index.get(word, {}).get(location, ())

    def has_count(self, location: str) -> bool:
        return location in self._counts

    def num_words(self) -> int:
        return len(self._index)

    def num_locations(self, word: str | None = None) -> int:
        if word is None:
            return len(self._counts)
        return len(self._index.get(word, ()))

    def num_positions(self, word: str, location: str) -> int:
        return len(self._index.get(word, {}).get(location, ()))

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, word: str) -> bool:
        return word in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._words_sorted())

    def __repr__(self) -> str:
        return f"InvertedIndex(words={len(self._index)}, locations={len(self._counts)})"

    # -- search ----------------------------------------------------------

    def search(self, queries: Iterable[str], partial: bool = False) -> list[SearchResult]:
        """Run an exact or partial search."""
        if partial:
            return self.partial_search(queries)
        return self.exact_search(queries)

    def exact_search(self, queries: Iterable[str]) -> list[SearchResult]:
        """Rank locations containing any of the query words exactly."""
        results: dict[str, SearchResult] = {}
        for query in queries:
            locations = self._index.get(query)
            if locations:
                self._update_results(locations, results)
        return sort_results(results.values())

    def partial_search(self, queries: Iterable[str]) -> list[SearchResult]:
        """Rank locations containing any word that starts with a query word."""
        results: dict[str, SearchResult] = {}
        words = self._words_sorted()
        for query in queries:
            i = bisect_left(words, query)
            while i < len(words) and words[i].startswith(query):
                self._update_results(self._index[words[i]], results)
                i += 1
        return sort_results(results.values())

    def _update_results(
        self,
        locations: dict[str, set[int]],
        results: dict[str, SearchResult],
    ) -> None:
        for location, positions in locations.items():
            result = results.get(location)
            if result is None:
                result = results[location] = SearchResult(location, self._counts[location])
            result.update(len(positions))

    def _words_sorted(self) -> list[str]:
        if self._sorted_words is None:
            self._sorted_words = sorted(self._index)
        return self._sorted_words

    # -- serialization ---------------------------------------------------

    def to_dict(self) -> dict[str, dict[str, list[int]]]:
        """JSON-ready view: words and locations sorted, positions ascending."""
        return {
            word: {
                location: sorted(positions)
                for location, positions in sorted(self._index[word].items())
            }
            for word in self._words_sorted()
        }

    def counts_to_dict(self) -> dict[str, int]:
        return dict(sorted(self._counts.items()))
