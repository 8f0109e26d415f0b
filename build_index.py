"""
Build an inverted index from a directory of text files or a web crawl.

Usage:
    python build_index.py data/ --index index.json --counts counts.json
    python build_index.py https://example.com/ --pages 20 --index index.json

Equivalent to the installed `webindex` command; see webindex.cli for all options.
"""

import sys

from webindex.cli import main


if __name__ == "__main__":
    sys.exit(main())
