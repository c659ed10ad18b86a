"""
Search backend access.

Components:
    - SearchClient: async httpx client for the detector / forecaster plugin APIs
    - SearchBackend: protocol the engine codes against (tests supply fakes)
    - SearchBackendError / PaginationError: backend fault taxonomy
"""
from .client import RetryPolicy, SearchBackend, SearchClient
from .errors import (
    PaginationError,
    SearchBackendError,
    error_message,
    is_benign_missing_index,
    prettify_error_message,
)

__all__ = [
    "PaginationError",
    "RetryPolicy",
    "SearchBackend",
    "SearchBackendError",
    "SearchClient",
    "error_message",
    "is_benign_missing_index",
    "prettify_error_message",
]
