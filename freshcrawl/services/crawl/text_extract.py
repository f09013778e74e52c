"""Plain-text extraction partitioned by script.

Every page yields three streams:

- general: all non-Han, non-kana characters
- chinese: general characters plus Han
- japanese: chinese characters plus Hiragana/Katakana

Two extractors implement the same contract. ``TreeTextExtractor`` walks the
BeautifulSoup tree; ``ScannerTextExtractor`` works on raw markup with a
minimal tag scanner and is meant for when no tree parser should be involved.
"""

from __future__ import annotations

import html
import re
from typing import Iterable, List, Tuple, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .base import TextBundle

Markup = Union[bytes, str]

SKIPPED_TAGS = frozenset({"script", "link"})
MAX_TAG_LENGTH = 512
WHITESPACE = frozenset(" \t\n\r")

_SCRIPT_CLOSE_RE = re.compile(r"</script", re.IGNORECASE)

_HAN_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x2E80, 0x2E99),
    (0x2E9B, 0x2EF3),
    (0x2F00, 0x2FD5),
    (0x3005, 0x3005),
    (0x3007, 0x3007),
    (0x3021, 0x3029),
    (0x3038, 0x303B),
    (0x3400, 0x4DBF),
    (0x4E00, 0x9FFF),
    (0xF900, 0xFA6D),
    (0xFA70, 0xFAD9),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2EBEF),
    (0x2F800, 0x2FA1D),
    (0x30000, 0x323AF),
)

_HIRAGANA_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x3041, 0x3096),
    (0x309D, 0x309F),
    (0x1B001, 0x1B11F),
    (0x1B150, 0x1B152),
    (0x1F200, 0x1F200),
)

_KATAKANA_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x30A1, 0x30FA),
    (0x30FD, 0x30FF),
    (0x31F0, 0x31FF),
    (0x32D0, 0x32FE),
    (0x3300, 0x3357),
    (0xFF66, 0xFF6F),
    (0xFF71, 0xFF9D),
    (0x1B000, 0x1B000),
    (0x1B164, 0x1B167),
)


def _in_ranges(cp: int, ranges: Iterable[Tuple[int, int]]) -> bool:
    # ranges are sorted
    for lo, hi in ranges:
        if cp < lo:
            return False
        if cp <= hi:
            return True
    return False


def is_chinese(ch: str) -> bool:
    return _in_ranges(ord(ch), _HAN_RANGES)


def is_japanese(ch: str) -> bool:
    """Hiragana or Katakana (Han is reported by is_chinese)."""
    cp = ord(ch)
    return _in_ranges(cp, _HIRAGANA_RANGES) or _in_ranges(cp, _KATAKANA_RANGES)


class _Streams:
    """Three text buffers fed character by character."""

    def __init__(self) -> None:
        self.general: List[str] = []
        self.chinese: List[str] = []
        self.japanese: List[str] = []

    @staticmethod
    def _space(buf: List[str]) -> None:
        if buf and buf[-1] != " ":
            buf.append(" ")

    def feed(self, text: str) -> None:
        for ch in text:
            if ch in WHITESPACE:
                self._space(self.japanese)
                self._space(self.chinese)
                self._space(self.general)
            elif is_japanese(ch):
                self.japanese.append(ch)
            elif is_chinese(ch):
                self.chinese.append(ch)
                self.japanese.append(ch)
            else:
                self.general.append(ch)
                self.chinese.append(ch)
                self.japanese.append(ch)

    def feed_raw_general(self, text: str) -> None:
        self.general.append(text)

    def finish(self, unescape: bool) -> TextBundle:
        def done(buf: List[str]) -> str:
            s = "".join(buf)
            if s.endswith(" "):
                s = s[:-1]
            return html.unescape(s) if unescape else s

        return TextBundle(
            general=done(self.general),
            chinese=done(self.chinese),
            japanese=done(self.japanese),
        )


def _as_text(markup: Markup) -> str:
    if isinstance(markup, bytes):
        return markup.decode("utf-8", errors="replace")
    return markup


class TreeTextExtractor:
    """Walks a parsed document tree, skipping script and link subtrees."""

    name = "tree"

    def __init__(self, features: str = "html.parser") -> None:
        self.features = features

    def extract(self, markup: Markup) -> TextBundle:
        soup = BeautifulSoup(_as_text(markup), self.features)
        streams = _Streams()
        self._walk(soup, streams)
        # the parser has already decoded entity references
        return streams.finish(unescape=False)

    def _walk(self, node: Tag, streams: _Streams) -> None:
        for child in node.children:
            if isinstance(child, Tag):
                if child.name and child.name.lower() in SKIPPED_TAGS:
                    continue
                self._walk(child, streams)
            elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
                streams.feed(str(child))


class ScannerTextExtractor:
    """Extracts text from raw markup without building a tree.

    Tags are skipped, ``<script>`` bodies are consumed up to the matching
    close tag and comments are dropped. Any other opening tag longer than
    MAX_TAG_LENGTH is not markup we trust, so it is kept verbatim in the
    general stream.
    """

    name = "scanner"

    def extract(self, markup: Markup) -> TextBundle:
        text = _as_text(markup)
        streams = _Streams()
        pos, n = 0, len(text)

        while pos < n:
            lt = text.find("<", pos)
            if lt < 0:
                streams.feed(text[pos:])
                break
            if lt > pos:
                streams.feed(text[pos:lt])

            if text.startswith("<!--", lt):
                end = text.find("-->", lt + 4)
                pos = n if end < 0 else end + 3
                continue

            gt = text.find(">", lt + 1)
            if gt < 0:
                # unterminated tag runs to the end of input
                break
            raw = text[lt + 1 : gt + 1]
            pos = gt + 1

            if raw.startswith("/"):
                continue

            # a script body is skipped however long its opening tag is
            if _tag_name(raw) == "script" and not raw.endswith("/>"):
                close = _SCRIPT_CLOSE_RE.search(text, pos)
                if close is None:
                    break
                gt = text.find(">", close.end())
                pos = n if gt < 0 else gt + 1
            elif len(raw) > MAX_TAG_LENGTH:
                streams.feed_raw_general("<" + raw)

        return streams.finish(unescape=True)


def _tag_name(raw: str) -> str:
    name = raw.rstrip(">")
    for i, ch in enumerate(name):
        if ch in WHITESPACE or ch == "/":
            name = name[:i]
            break
    return name.lower()


TextExtractor = Union[TreeTextExtractor, ScannerTextExtractor]


def get_text_extractor(mode: str = "tree") -> TextExtractor:
    if mode == "tree":
        return TreeTextExtractor()
    if mode == "scanner":
        return ScannerTextExtractor()
    raise ValueError(f"unknown text extractor {mode!r}")
