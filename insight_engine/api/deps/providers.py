"""Singleton dependency providers for FastAPI ``Depends()``."""
from __future__ import annotations

import logging
from functools import lru_cache

from ..config import ApiSettings

logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> ApiSettings:
    return ApiSettings()


# Lazy singleton: the httpx client binds to the running event loop, so it is
# created on first request rather than at import time.

_search_client = None


def get_search_client():
    """Return the singleton ``SearchClient``."""
    global _search_client
    if _search_client is None:
        from ...search.client import RetryPolicy, SearchClient

        settings = get_settings()
        _search_client = SearchClient(
            settings.search_url,
            username=settings.search_username or None,
            password=settings.search_password or None,
            verify_certs=settings.verify_certs,
            retry_policy=RetryPolicy(
                max_retries=settings.max_retries,
                backoff_seconds=settings.retry_backoff_seconds,
                timeout_seconds=settings.request_timeout_seconds,
            ),
        )
        logger.info("Search client created for %s", settings.search_url)
    return _search_client


async def close_search_client() -> None:
    """Close and forget the singleton client, if one was created."""
    global _search_client
    client = _search_client
    _search_client = None
    if client is not None and hasattr(client, "aclose"):
        await client.aclose()
