"""Runtime configuration.

Values come from environment variables, optionally seeded from a ``.env`` file
at the project root:

- FRESHCRAWL_DB_PATH: directory of the freshness store (default: data)
- FRESHCRAWL_PASSWORD: shared secret expected in the ``Password`` header
- FRESHCRAWL_HOST / FRESHCRAWL_PORT: listen address of the freshness service
- FRESHCRAWL_INDEX_ENDPOINT: JSON update endpoint of the document index
- FRESHCRAWL_PROXY: optional HTTP proxy for page fetches
- FRESHCRAWL_USER_AGENT, FRESHCRAWL_TIMEOUT, FRESHCRAWL_MAX_RESPONSE_SIZE
- FRESHCRAWL_CRAWL_DELAY: seconds to sleep between pages
- FRESHCRAWL_TEXT_EXTRACTOR: ``tree`` (default) or ``scanner``
- FRESHCRAWL_DEFAULT_WEIGHT: weight byte written into new freshness records
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_INDEX_ENDPOINT = "http://127.0.0.1:8983/solr/new_core/update/json/docs?commit=true"
DEFAULT_MAX_RESPONSE_SIZE = 5 * 1024 * 1024


def _load_env_from_file() -> None:
    """Load variables from a .env file at the project root if present.

    Only sets variables that aren't already present in the process environment.
    """
    root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    env_path = os.path.join(root_dir, ".env")
    if not os.path.isfile(env_path):
        return
    try:
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                s = line.strip()
                if not s or s.startswith("#") or "=" not in s:
                    continue
                key, val = s.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                if key and not os.environ.get(key):
                    os.environ[key] = val
    except OSError:
        # .env is a convenience; an unreadable one behaves like a missing one
        return


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


@dataclass
class Settings:
    db_path: str = "data"
    password: str = "disz"
    host: str = "0.0.0.0"
    port: int = 8999
    index_endpoint: str = DEFAULT_INDEX_ENDPOINT
    proxy: Optional[str] = None
    user_agent: str = "freshcrawl/0.1"
    timeout: float = 10.0
    max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE
    crawl_delay: float = 1.0
    text_extractor: str = "tree"
    default_weight: int = 1

    @classmethod
    def from_env(cls) -> "Settings":
        _load_env_from_file()
        weight = _env_int("FRESHCRAWL_DEFAULT_WEIGHT", 1)
        if not 0 <= weight <= 0xFF:
            raise RuntimeError(f"FRESHCRAWL_DEFAULT_WEIGHT must fit in one byte, got {weight}")
        extractor = (os.getenv("FRESHCRAWL_TEXT_EXTRACTOR") or "tree").strip().lower()
        if extractor not in ("tree", "scanner"):
            raise RuntimeError(f"FRESHCRAWL_TEXT_EXTRACTOR must be 'tree' or 'scanner', got {extractor!r}")
        return cls(
            db_path=os.getenv("FRESHCRAWL_DB_PATH") or "data",
            password=os.getenv("FRESHCRAWL_PASSWORD") or "disz",
            host=os.getenv("FRESHCRAWL_HOST") or "0.0.0.0",
            port=_env_int("FRESHCRAWL_PORT", 8999),
            index_endpoint=os.getenv("FRESHCRAWL_INDEX_ENDPOINT") or DEFAULT_INDEX_ENDPOINT,
            proxy=os.getenv("FRESHCRAWL_PROXY") or None,
            user_agent=os.getenv("FRESHCRAWL_USER_AGENT") or "freshcrawl/0.1",
            timeout=_env_float("FRESHCRAWL_TIMEOUT", 10.0),
            max_response_size=_env_int("FRESHCRAWL_MAX_RESPONSE_SIZE", DEFAULT_MAX_RESPONSE_SIZE),
            crawl_delay=_env_float("FRESHCRAWL_CRAWL_DELAY", 1.0),
            text_extractor=extractor,
            default_weight=weight,
        )


_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = Settings.from_env()
    return _settings_cache
