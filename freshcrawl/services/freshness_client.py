"""Client for a remote freshness service (see ``freshcrawl.main``)."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class FreshnessClient:
    def __init__(
        self,
        endpoint: str,
        password: str,
        *,
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.endpoint = endpoint
        self.password = password
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def should_fetch(self, url: str) -> bool:
        """True on 200 (new or stale). 304 and every failure mean skip."""
        try:
            resp = self._client.get(self.endpoint, headers={"Password": self.password, "Url": url})
        except (httpx.HTTPError, UnicodeEncodeError) as exc:
            logger.warning("freshness check for %s failed: %s", url, exc)
            return False
        if resp.status_code == 200:
            return True
        if resp.status_code != 304:
            logger.warning("freshness check for %s rejected: %s", url, resp.status_code)
        return False
