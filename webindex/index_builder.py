"""
Index builder for local text files.

A directory is walked recursively and every .txt/.text file (any case) is
indexed; a single file given directly is indexed whatever its extension.
Every file gets positions starting at 1, continuing across its lines, under
the location str(path).

With workers > 1 each file is indexed into its own partial index on a
thread pool; partials are merged into the target index on the calling
thread.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Iterator

from .inverted_index import InvertedIndex
from .tokenizer import list_stems, read_text_file

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = (".txt", ".text")


def is_text_file(path: Path) -> bool:
    """True for regular files ending in .txt or .text."""
    path = Path(path)
    return path.is_file() and path.suffix.lower() in TEXT_EXTENSIONS


def iter_text_files(root: Path) -> list[Path]:
    """Text files under root (or root itself), in a stable order."""
    root = Path(root)
    if root.is_file():
        return [root]
    return sorted((p for p in root.rglob("*") if is_text_file(p)), key=lambda p: str(p))


def iter_lines(root: Path) -> Iterator[tuple[str, str]]:
    """
    Yield (location, line) for every line of every text file under root.
    Unreadable files are logged and skipped.
    """
    for filepath in iter_text_files(root):
        try:
            content = read_text_file(filepath)
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s: %s", filepath, e)
            continue
        location = str(filepath)
        for line in content.splitlines():
            yield location, line


def index_lines(pairs: Iterable[tuple[str, str]], index: InvertedIndex) -> set[str]:
    """
    Add a (location, line) stream to index. Positions continue from line to
    line within a location. Returns the locations that received words.
    """
    next_position: dict[str, int] = {}
    for location, line in pairs:
        stems = list_stems(line)
        start = next_position.get(location, 1)
        index.add_words(stems, location, start=start)
        next_position[location] = start + len(stems)
    return {location for location, position in next_position.items() if position > 1}


def index_file(filepath: Path) -> InvertedIndex:
    """Build a partial index for one file."""
    partial = InvertedIndex()
    index_lines(iter_lines(filepath), partial)
    return partial


def build_index_from_path(
    path: Path,
    index: InvertedIndex,
    *,
    workers: int = 1,
) -> int:
    """
    Index a text file or a directory of text files into index.
    Returns the number of files that contributed words.
    """
    if workers <= 1:
        indexed = len(index_lines(iter_lines(path), index))
    else:
        indexed = 0
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(index_file, fp) for fp in iter_text_files(path)]
            for future in as_completed(futures):
                partial = future.result()
                if partial.num_locations():
                    index.merge(partial)
                    indexed += 1

    logger.info("Indexed %d files from %s", indexed, path)
    return indexed
