from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx

from freshcrawl.config import DEFAULT_MAX_RESPONSE_SIZE

logger = logging.getLogger(__name__)


def looks_binary(body: bytes) -> bool:
    """Treat a body as binary when more than 1/20 of its bytes are above 0xF0."""
    score = sum(1 for b in body if b > 0xF0)
    return score > len(body) // 20


class PageFetcher:
    """Fetches raw page bytes, one request at a time, no retries.

    The body is read up to ``max_response_size`` bytes and then cut off.
    Empty and binary-looking bodies are dropped.
    """

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        proxy: Optional[str] = None,
        max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.max_response_size = int(max_response_size)
        self._client = client or httpx.Client(
            timeout=timeout,
            headers=headers or {"User-Agent": "freshcrawl/0.1"},
            proxy=proxy,
            follow_redirects=True,
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, url: str) -> Optional[bytes]:
        try:
            with self._client.stream("GET", url) as resp:
                body = self._read_capped(resp)
        except httpx.HTTPError as exc:
            logger.warning("fetch %s failed: %s", url, exc)
            return None

        if not body:
            logger.info("%s: empty", url)
            return None
        if looks_binary(body):
            logger.info("%s: maybe binary?", url)
            return None
        return body

    def _read_capped(self, resp: httpx.Response) -> bytes:
        chunks = []
        remaining = self.max_response_size
        for chunk in resp.iter_bytes():
            if len(chunk) >= remaining:
                chunks.append(chunk[:remaining])
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)
