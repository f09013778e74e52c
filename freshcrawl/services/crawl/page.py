"""Turn fetched bytes into an index document plus the page's outgoing links."""

from __future__ import annotations

import time
from typing import List, Optional, Tuple

from selectolax.parser import HTMLParser

from .base import PageError, PageRecord, clean_text, sha1_guid
from .charset import detect_and_decode
from .text_extract import TextExtractor, TreeTextExtractor
from .urljoin import join_url


def _meta_content(doc: HTMLParser, name: str) -> str:
    for node in doc.css("meta[name]"):
        if (node.attributes.get("name") or "").strip().lower() == name:
            return node.attributes.get("content") or ""
    return ""


def _texts(doc: HTMLParser, selector: str) -> List[str]:
    return [node.text() for node in doc.css(selector)]


def build_page(
    url: str,
    raw: bytes,
    *,
    extractor: Optional[TextExtractor] = None,
    now: Optional[float] = None,
) -> Tuple[PageRecord, List[str]]:
    """Build the index document for ``url`` and collect resolved outgoing links.

    Raises PageError when the page can't be decoded or parsed.
    """
    decoded = detect_and_decode(raw)
    markup = decoded.text()
    try:
        doc = HTMLParser(markup)
    except Exception as exc:
        raise PageError(f"cannot parse {url}: {exc}") from exc

    bundle = (extractor or TreeTextExtractor()).extract(markup)

    record = PageRecord(
        id=sha1_guid(url),
        url=url,
        updated=int(time.time() if now is None else now),
        content_txt_en=bundle.general,
        content_txt_cn=bundle.chinese,
        content_txt_jp=bundle.japanese,
    )
    title = doc.css_first("title")
    if title is not None:
        record.title = clean_text(title.text())
    record.keywords = _meta_content(doc, "keywords")
    record.description = _meta_content(doc, "description")
    record.h1 = _texts(doc, "h1")
    record.h2 = _texts(doc, "h2")
    record.h3 = _texts(doc, "h3")
    record.h4 = _texts(doc, "h4")

    outlinks: List[str] = []
    for a in doc.css("a"):
        href = a.attributes.get("href")
        if href is not None and not href.startswith("javascript:"):
            outlinks.append(join_url(url, href))
        record.links.append(a.text())

    return record, outlinks
