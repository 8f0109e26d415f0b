"""
Web crawler that feeds an inverted index.

Pages move through Pending -> Fetched -> Indexed or Skipped. A page is
skipped when its URI was already dispatched, is not http(s), cannot be
fetched as HTML, or when the page budget is already used up.

The crawl is driven by an explicit work queue: a stack for depth-first order
(the links of a page are visited before its siblings), a FIFO for
breadth-first order. The coordinator (the thread calling crawl()) owns the
queue, marks URIs visited when it dispatches them and merges each page's
partial index into the target index. Only fetching, cleaning and stemming
run on worker threads when workers > 1.
"""

from __future__ import annotations

import functools
import logging
import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from html import unescape
from typing import Callable, Iterable
from urllib.parse import urldefrag, urljoin, urlsplit

from . import fetcher
from .cleaner import extract_hyperlinks, strip_html
from .config import DEFAULT_PAGE_BUDGET
from .fetcher import FetchResult, is_valid_url
from .inverted_index import InvertedIndex
from .tokenizer import list_stems

logger = logging.getLogger(__name__)

FetchFunc = Callable[[str, int], FetchResult]


def canonicalize(link: str, base: str | None = None) -> str:
    """
    Resolve link against base (when given) and drop the fragment, so that
    page#a and page#b are the same location.
    Raises ValueError for links that cannot be parsed.
    """
    link = link.strip()
    if not link or any(ch.isspace() or ord(ch) < 32 for ch in link):
        raise ValueError(f"Malformed link: {link!r}")
    try:
        absolute = urljoin(base, link) if base else link
        uri, _fragment = urldefrag(absolute)
        urlsplit(uri).port  # raises ValueError for a bad port
    except ValueError as exc:
        raise ValueError(f"Malformed link: {link!r} ({exc})") from exc
    return uri


def index_page(html: str, location: str) -> InvertedIndex:
    """Clean, parse and stem a page into its own partial index."""
    partial = InvertedIndex()
    partial.add_words(list_stems(strip_html(html)), location)
    return partial


class CrawlSession:
    """
    Crawl-wide shared state: the visited set and the page budget.

    The budget counts indexed pages plus pages in flight, so concurrent
    fetches can never push the number of indexed pages past the budget. A
    failed fetch gives its slot back.
    """

    def __init__(self, page_budget: int) -> None:
        self.page_budget = page_budget
        self.visited: set[str] = set()
        self.pages_indexed = 0
        self.in_flight = 0
        self._lock = threading.Lock()

    def mark_visited(self, uri: str) -> bool:
        """Record uri as dispatched; False if it already was."""
        with self._lock:
            if uri in self.visited:
                return False
            self.visited.add(uri)
            return True

    def is_visited(self, uri: str) -> bool:
        with self._lock:
            return uri in self.visited

    def reserve(self) -> bool:
        """Claim a budget slot for one fetch, if any is left."""
        with self._lock:
            if self.pages_indexed + self.in_flight >= self.page_budget:
                return False
            self.in_flight += 1
            return True

    def release(self, indexed: bool) -> None:
        """Return a slot; an indexed page keeps it permanently."""
        with self._lock:
            self.in_flight -= 1
            if indexed:
                self.pages_indexed += 1

    @property
    def budget_met(self) -> bool:
        with self._lock:
            return self.pages_indexed >= self.page_budget


@dataclass
class CrawlStats:
    indexed: int = 0
    failed: int = 0
    skipped: int = 0
    failures: dict[str, str] = field(default_factory=dict)


@dataclass
class PageVisit:
    """What a worker hands back to the coordinator for one URI."""

    result: FetchResult
    partial: InvertedIndex | None = None
    links: list[str] = field(default_factory=list)


class Crawler:
    """
    Crawls from a seed URI into index until the page budget is met or no
    links are left.
    """

    def __init__(
        self,
        index: InvertedIndex,
        page_budget: int = DEFAULT_PAGE_BUDGET,
        max_redirects: int = fetcher.DEFAULT_REDIRECTS,
        timeout: float = fetcher.DEFAULT_TIMEOUT,
        workers: int = 1,
        order: str = "depth",
        fetch: FetchFunc | None = None,
    ) -> None:
        if order not in ("depth", "breadth"):
            raise ValueError(f"Unknown crawl order: {order!r}")
        self.index = index
        self.max_redirects = max_redirects
        self.workers = max(1, workers)
        self.depth_first = order == "depth"
        self.fetch = fetch or functools.partial(fetcher.fetch, timeout=timeout)
        self.session = CrawlSession(page_budget)
        self.stats = CrawlStats()
        self._frontier: deque[str] = deque()

    def crawl(self, seed: str) -> CrawlStats:
        logger.info("Crawling from %s (budget %d pages)", seed, self.session.page_budget)
        self._push([seed], base=None)
        if self.workers == 1:
            self._run_serial()
        else:
            self._run_pool()
        logger.info(
            "Crawl finished: %d indexed, %d failed, %d skipped",
            self.stats.indexed,
            self.stats.failed,
            self.stats.skipped,
        )
        return self.stats

    def _run_serial(self) -> None:
        while self.session.reserve():
            uri = self._next_uri()
            if uri is None:
                self.session.release(indexed=False)
                break
            self._complete(self._visit(uri))

    def _run_pool(self) -> None:
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            pending: dict[Future, str] = {}
            while True:
                while self.session.reserve():
                    uri = self._next_uri()
                    if uri is None:
                        self.session.release(indexed=False)
                        break
                    pending[executor.submit(self._visit, uri)] = uri
                if not pending:
                    break
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    pending.pop(future)
                    self._complete(future.result())

    def _next_uri(self) -> str | None:
        """Take the next URI off the queue that should actually be fetched."""
        while self._frontier:
            uri = self._frontier.pop() if self.depth_first else self._frontier.popleft()
            if not is_valid_url(uri):
                logger.debug("Skipping %s: not an http(s) URL", uri)
                self.stats.skipped += 1
                continue
            if not self.session.mark_visited(uri):
                logger.debug("Skipping %s: already visited", uri)
                self.stats.skipped += 1
                continue
            return uri
        return None

    def _visit(self, uri: str) -> PageVisit:
        """Fetch and index one page. Runs on a worker thread when workers > 1."""
        result = self.fetch(uri, self.max_redirects)
        if not result.ok:
            return PageVisit(result)
        return PageVisit(
            result,
            partial=index_page(result.html, uri),
            links=[unescape(link) for link in extract_hyperlinks(result.html)],
        )

    def _complete(self, visit: PageVisit) -> None:
        result = visit.result
        if not result.ok:
            self.session.release(indexed=False)
            self.stats.failed += 1
            self.stats.failures[result.uri] = result.failure.value if result.failure else "unknown"
            logger.info("Failed to fetch HTML from %s", result.uri)
            return

        self.index.merge(visit.partial)
        self.session.release(indexed=True)
        self.stats.indexed += 1
        logger.info(
            "Indexed %s (%d/%d)",
            result.uri,
            self.session.pages_indexed,
            self.session.page_budget,
        )
        if self.session.budget_met:
            logger.info("Reached page budget of %d", self.session.page_budget)
            return
        self._push(visit.links, base=result.uri)

    def _push(self, links: Iterable[str], base: str | None) -> None:
        resolved = []
        for link in links:
            try:
                uri = canonicalize(link, base)
            except ValueError as exc:
                logger.warning("Skipping link on %s: %s", base, exc)
                self.stats.skipped += 1
                continue
            if not self.session.is_visited(uri):
                resolved.append(uri)
        if self.depth_first:
            # Stack: the first link on the page is popped first.
            self._frontier.extend(reversed(resolved))
        else:
            self._frontier.extend(resolved)


def crawl(
    seed: str,
    index: InvertedIndex,
    page_budget: int = DEFAULT_PAGE_BUDGET,
    **kwargs,
) -> CrawlStats:
    """Crawl from seed into index; see Crawler for the keyword arguments."""
    return Crawler(index, page_budget=page_budget, **kwargs).crawl(seed)
