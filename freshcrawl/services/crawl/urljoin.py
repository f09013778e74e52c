"""Lenient, browser-like resolution of link references against a page URL."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from .base import MalformedBaseURL

logger = logging.getLogger(__name__)


def _collapse_dot_segments(url: str) -> str:
    # Each pass removes one "<segment>/../" pair; a "../" with no segment
    # before it is left untouched.
    while True:
        i = url.index("://") + 3
        last, before_last = -1, -1
        spliced = False
        while i < len(url):
            if url[i] == "/":
                before_last = last
                last = i
            if (
                url[i] == "."
                and url[i - 1] == "/"
                and i < len(url) - 2
                and url[i + 1] == "."
                and url[i + 2] == "/"
                and before_last > -1
            ):
                url = url[: before_last + 1] + url[i + 3 :]
                spliced = True
                break
            i += 1
        if not spliced:
            return url


def join_url(base: str, ref: str) -> str:
    """Resolve ``ref`` against the absolute URL ``base``.

    Raises MalformedBaseURL when ``base`` has no scheme/host to anchor a
    relative path on.
    """
    if ref == "" or ref == ".":
        return base
    if ref.startswith("http://") or ref.startswith("https://"):
        return ref

    try:
        parts = urlsplit(base)
    except ValueError as exc:
        logger.warning("cannot parse base url %r: %s", base, exc)
        return ref

    lead = f"{parts.scheme}://{parts.netloc}{parts.path}"
    if parts.path == "":
        lead += "/"

    if ref.startswith("//"):
        return f"{parts.scheme}:{ref}"
    if ref.startswith("#") or ref.startswith("?"):
        return lead + ref
    if ref.startswith("/"):
        return f"{parts.scheme}://{parts.netloc}{ref}"

    segments = lead.split("/")
    if len(segments) < 4:
        raise MalformedBaseURL(f"base url {base!r} has no host to resolve {ref!r} against")
    if segments[3] == "":
        # scheme : / / host /
        return f"{parts.scheme}://{parts.netloc}/{ref}"

    joined = "/".join(segments[:-1]) + "/" + ref
    return _collapse_dot_segments(joined)
