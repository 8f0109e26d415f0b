import pytest

from webindex.index_builder import (
    build_index_from_path,
    index_file,
    is_text_file,
    iter_lines,
    iter_text_files,
)
from webindex.inverted_index import InvertedIndex


@pytest.fixture
def corpus(tmp_path):
    (tmp_path / "nested" / "deeper").mkdir(parents=True)
    (tmp_path / "a.txt").write_text("Dogs and cats\nbig dogs\n", encoding="utf-8")
    (tmp_path / "nested" / "b.TEXT").write_text("Birds\n\n123\nbirds fly", encoding="utf-8")
    (tmp_path / "nested" / "deeper" / "c.txt").write_bytes("Café dogs".encode("latin-1"))
    (tmp_path / "nested" / "notes.md").write_text("dogs dogs dogs", encoding="utf-8")
    (tmp_path / "empty.txt").write_text("", encoding="utf-8")
    return tmp_path


def test_is_text_file(corpus):
    assert is_text_file(corpus / "a.txt")
    assert is_text_file(corpus / "nested" / "b.TEXT")
    assert not is_text_file(corpus / "nested" / "notes.md")
    assert not is_text_file(corpus / "nested")


def test_iter_text_files(corpus):
    files = iter_text_files(corpus)
    assert [p.name for p in files] == ["a.txt", "empty.txt", "b.TEXT", "c.txt"]
    assert iter_text_files(corpus / "nested" / "notes.md") == [corpus / "nested" / "notes.md"]


def test_iter_lines(corpus):
    location = str(corpus / "a.txt")
    lines = [pair for pair in iter_lines(corpus) if pair[0] == location]
    assert lines == [(location, "Dogs and cats"), (location, "big dogs")]


def test_positions_continue_across_lines(corpus):
    partial = index_file(corpus / "a.txt")
    location = str(corpus / "a.txt")
    assert partial.get_positions("dog", location) == [1, 5]
    assert partial.get_positions("cat", location) == [3]
    assert partial.get_count(location) == 5


def test_build_index_from_directory(corpus):
    index = InvertedIndex()
    assert build_index_from_path(corpus, index) == 3
    b = str(corpus / "nested" / "b.TEXT")
    c = str(corpus / "nested" / "deeper" / "c.txt")
    assert index.get_positions("bird", b) == [1, 2]
    assert index.get_positions("fli", b) == [3]
    assert index.get_positions("cafe", c) == [1]
    assert index.get_count(c) == 2
    assert str(corpus / "nested" / "notes.md") not in index.get_locations()
    assert str(corpus / "empty.txt") not in index.get_locations()


def test_build_index_from_single_file(corpus):
    index = InvertedIndex()
    notes = corpus / "nested" / "notes.md"
    build_index_from_path(notes, index)
    assert index.get_locations() == [str(notes)]
    assert index.get_count(str(notes)) == 3


def test_parallel_build_matches_serial(corpus):
    serial = InvertedIndex()
    build_index_from_path(corpus, serial)
    parallel = InvertedIndex()
    build_index_from_path(corpus, parallel, workers=3)
    assert parallel.to_dict() == serial.to_dict()
    assert parallel.counts_to_dict() == serial.counts_to_dict()
