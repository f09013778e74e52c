from __future__ import annotations

import logging
from typing import Optional

import httpx

from freshcrawl.config import DEFAULT_INDEX_ENDPOINT

from .base import PageRecord

logger = logging.getLogger(__name__)


class SolrIndexClient:
    """Posts page documents to a Solr JSON update endpoint.

    Failures are logged and dropped; the crawl never waits on the index.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_INDEX_ENDPOINT,
        *,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.endpoint = endpoint
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def add(self, record: PageRecord) -> bool:
        try:
            resp = self._client.post(self.endpoint, json=record.to_dict())
        except httpx.HTTPError as exc:
            logger.warning("index post for %s failed: %s", record.url, exc)
            return False
        logger.info("index %s: %s %s", record.url, resp.status_code, resp.text)
        return resp.is_success
