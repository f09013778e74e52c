from __future__ import annotations

import argparse
import logging
import time
from collections import deque
from typing import Callable, Iterable, List, Optional

from freshcrawl.config import Settings, get_settings

from .base import PageError
from .fetcher import PageFetcher
from .indexer import SolrIndexClient
from .page import build_page
from .text_extract import TextExtractor, get_text_extractor

logger = logging.getLogger(__name__)

Gate = Callable[[str], bool]


class Crawler:
    """Breadth-first crawl driver.

    Pages are handled strictly one at a time: fetch, decode, extract, post to
    the index, then queue the page's links. ``gate`` decides per URL whether
    to fetch at all (e.g. a freshness check); without one every URL is fetched.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        index: SolrIndexClient,
        *,
        extractor: Optional[TextExtractor] = None,
        gate: Optional[Gate] = None,
        delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.fetcher = fetcher
        self.index = index
        self.extractor = extractor or get_text_extractor("tree")
        self.gate = gate
        self.delay = float(delay)
        self.sleep = sleep

    def crawl_one(self, url: str) -> List[str]:
        """Process a single URL and return the links found on it."""
        if self.gate is not None and not self.gate(url):
            logger.info("%s: fresh, skipped", url)
            return []
        raw = self.fetcher.fetch(url)
        if raw is None:
            return []
        try:
            record, links = build_page(url, raw, extractor=self.extractor)
        except PageError as exc:
            logger.warning("%s: %s", url, exc)
            return []
        self.index.add(record)
        return links

    def run(self, seeds: Iterable[str], *, max_pages: Optional[int] = None) -> int:
        queue = deque(seeds)
        processed = 0
        while queue:
            if max_pages is not None and processed >= max_pages:
                break
            url = queue.popleft()
            logger.info("%s", url)
            queue.extend(self.crawl_one(url))
            processed += 1
            if queue and self.delay > 0:
                self.sleep(self.delay)
        return processed


def _build_gate(args: argparse.Namespace, settings: Settings) -> Optional[Gate]:
    if args.dispatcher:
        from freshcrawl.services.freshness_client import FreshnessClient

        client = FreshnessClient(args.dispatcher, settings.password, timeout=settings.timeout)
        return client.should_fetch
    if args.local_db:
        from freshcrawl.db.kv_store import KVStore
        from freshcrawl.services.freshness_service import FreshnessCache

        cache = FreshnessCache(KVStore.open(args.local_db), weight=settings.default_weight)
        return lambda url: cache.check(url).should_fetch
    return None


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Crawl pages or serve URL freshness decisions")
    sub = parser.add_subparsers(dest="cmd", required=True)

    crawl = sub.add_parser("crawl", help="Crawl from seed URLs and post pages to the index")
    crawl.add_argument("seeds", nargs="+", help="Seed URLs")
    crawl.add_argument("--max-pages", type=int, default=None, help="Stop after this many URLs")
    crawl.add_argument("--delay", type=float, default=None, help="Seconds between pages")
    gate = crawl.add_mutually_exclusive_group()
    gate.add_argument("--dispatcher", help="URL of a running freshness service")
    gate.add_argument("--local-db", help="Check freshness against a local store directory instead")

    serve = sub.add_parser("serve", help="Run the freshness service")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s.%(msecs)03d %(filename)s:%(lineno)d %(message)s",
        datefmt="%H:%M:%S",
    )
    settings = get_settings()

    if args.cmd == "serve":
        import uvicorn

        from freshcrawl.main import create_app

        host = args.host or settings.host
        port = args.port or settings.port
        logger.info("listen on %s:%d", host, port)
        uvicorn.run(create_app(settings), host=host, port=port)
        return 0

    if args.cmd == "crawl":
        fetcher = PageFetcher(
            timeout=settings.timeout,
            headers={"User-Agent": settings.user_agent},
            proxy=settings.proxy,
            max_response_size=settings.max_response_size,
        )
        index = SolrIndexClient(settings.index_endpoint, timeout=settings.timeout)
        crawler = Crawler(
            fetcher,
            index,
            extractor=get_text_extractor(settings.text_extractor),
            gate=_build_gate(args, settings),
            delay=settings.crawl_delay if args.delay is None else args.delay,
        )
        try:
            count = crawler.run(args.seeds, max_pages=args.max_pages)
        finally:
            fetcher.close()
            index.close()
        logger.info("crawled %d urls", count)
        return 0

    parser.error("unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
