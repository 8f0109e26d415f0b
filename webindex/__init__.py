"""Search engine over local text files or a web crawl."""

from .inverted_index import InvertedIndex
from .search import SearchResult, QueryProcessor
from .crawler import Crawler, CrawlSession, crawl
from .fetcher import fetch, FetchResult, FetchFailure
from .index_builder import build_index_from_path
from .cleaner import strip_html, extract_hyperlinks
