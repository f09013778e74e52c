from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List


class PageError(Exception):
    """A single page could not be processed; the crawl moves on."""


class CharsetDetectionError(PageError):
    pass


class TranscodeError(PageError):
    pass


class MalformedBaseURL(ValueError):
    """Raised when a base URL is too short to resolve references against."""


_WS_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse every whitespace run to one space and trim the ends."""
    return _WS_RE.sub(" ", text).strip()


def sha1_guid(text: str) -> str:
    """SHA-1 of text, formatted like a GUID (8-4-4-4-12 hex digits)."""
    h = hashlib.sha1(text.encode("utf-8")).hexdigest()
    return f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:32]}"


@dataclass
class TextBundle:
    general: str = ""
    chinese: str = ""
    japanese: str = ""


@dataclass
class PageRecord:
    id: str
    url: str
    updated: int
    title: str = ""
    keywords: str = ""
    description: str = ""
    h1: List[str] = field(default_factory=list)
    h2: List[str] = field(default_factory=list)
    h3: List[str] = field(default_factory=list)
    h4: List[str] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    content_txt_en: str = ""
    content_txt_cn: str = ""
    content_txt_jp: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
