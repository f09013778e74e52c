"""Declared-charset detection and one-shot transcoding to UTF-8.

Pages announce their encoding in markup (``<meta charset=...>`` or a
``content="text/html; charset=..."`` attribute). Structural parsing and text
extraction only ever see UTF-8, so legacy CJK encodings are converted for the
whole document up front.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional

from selectolax.parser import HTMLParser

from .base import CharsetDetectionError, TranscodeError

logger = logging.getLogger(__name__)

CANONICAL_CHARSET = "utf-8"

# label (lower-case) -> Python codec; labels not listed here are a no-op
DECODERS: Dict[str, str] = {
    "gbk": "gbk",
    "gb2312": "gb18030",
    "gb18030": "gb18030",
    "hz-gb-2312": "hz",
    "big5": "big5",
    "x-sjis": "shift_jis",
    "shift_jis": "shift_jis",
    "shift-jis": "shift_jis",
    "x-euc": "euc_jp",
    "x_euc": "euc_jp",
    "euc-jp": "euc_jp",
    "iso-2022-jp": "iso2022_jp",
    "csiso2022jp": "iso2022_jp",
    "euc-kr": "euc_kr",
    "euc_kr": "euc_kr",
}

_QUOTED_CHARSET_RE = re.compile(r'charset="(\S+?)"', re.IGNORECASE)
_BARE_CHARSET_RE = re.compile(r"charset=(\S+)", re.IGNORECASE)


@dataclass
class DecodedPage:
    body: bytes
    charset: str

    def text(self) -> str:
        """The body as text. Parse this, not ``body``: the page still carries
        its original charset declaration, which a byte-level parser would obey.
        """
        return self.body.decode("utf-8", errors="replace")


def codec_for(label: Optional[str]) -> Optional[str]:
    """Return the Python codec for a declared label, or None for a no-op."""
    if not label:
        return None
    return DECODERS.get(label.strip().lower())


def charset_from_content(content: str) -> Optional[str]:
    """Pull the charset out of a meta ``content`` value, quoted form first."""
    m = _QUOTED_CHARSET_RE.search(content) or _BARE_CHARSET_RE.search(content)
    if m is None:
        return None
    return m.group(1).lower()


def detect_charset(raw: bytes) -> str:
    try:
        doc = HTMLParser(raw)
        meta_charset = doc.css_first("meta[charset]")
        meta_content = doc.css_first("meta[content]")
    except Exception as exc:
        raise CharsetDetectionError(f"cannot parse markup for charset hints: {exc}") from exc

    if meta_charset is not None:
        value = meta_charset.attributes.get("charset") or ""
        if value.strip():
            return value.strip().lower()

    if meta_content is not None:
        value = meta_content.attributes.get("content") or ""
        if value:
            found = charset_from_content(value)
            if found:
                return found

    return CANONICAL_CHARSET


def transcode(raw: bytes, label: str) -> bytes:
    codec = codec_for(label)
    if codec is None:
        return raw
    try:
        text = raw.decode(codec, errors="replace")
    except (LookupError, UnicodeError) as exc:
        raise TranscodeError(f"cannot decode page as {label}: {exc}") from exc
    return text.encode("utf-8")


def detect_and_decode(raw: bytes) -> DecodedPage:
    label = detect_charset(raw)
    if codec_for(label) is None:
        return DecodedPage(body=raw, charset=label)
    logger.info("original charset: %s", label)
    return DecodedPage(body=transcode(raw, label), charset=label)
