"""Crawling subsystem.

Structure:
- base.py: page record, text bundle, errors and small helpers
- urljoin.py: lenient relative-URL resolution
- charset.py: declared-charset detection and transcoding to UTF-8
- text_extract.py: script-partitioned plain-text extraction
- fetcher.py: capped HTTP fetches with binary sniffing
- page.py: raw bytes -> index document + outgoing links
- indexer.py: posts documents to the search index
- runner.py: crawl driver and CLI entrypoint
"""

from .base import PageRecord, TextBundle
from .urljoin import join_url
from .charset import detect_and_decode
from .text_extract import ScannerTextExtractor, TreeTextExtractor, get_text_extractor

__all__ = [
    "PageRecord",
    "TextBundle",
    "join_url",
    "detect_and_decode",
    "ScannerTextExtractor",
    "TreeTextExtractor",
    "get_text_extractor",
]
