"""Backend error taxonomy and message helpers."""
from __future__ import annotations

import re
from typing import Optional

INDEX_NOT_FOUND_TYPE = "index_not_found_exception"
UNKNOWN_ERROR_MESSAGE = "Unknown error is returned."

_PERMISSIONS_ERROR_PATTERN = re.compile(
    r"no permissions for \[(.+)\] and User \[name=(.+), backend_roles"
)


class SearchBackendError(Exception):
    """The search backend answered with a non-2xx status.

    ``error_type`` and ``reason`` are lifted from the backend's
    ``{"error": {"type": ..., "reason": ...}}`` body when present.
    """

    def __init__(
        self,
        status_code: int,
        error_type: str = "",
        reason: str = "",
        message: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type or ""
        self.reason = reason or ""
        super().__init__(message or self.reason or f"Search backend returned HTTP {status_code}")


class PaginationError(Exception):
    """Cursor pagination could not make progress."""


def is_benign_missing_index(err: BaseException) -> bool:
    """True when ``err`` only says the result/task index does not exist yet.

    A cluster on which no job has ever run has no result or task index; reads
    against it are an empty state rather than a fault.
    """
    return (
        isinstance(err, SearchBackendError)
        and err.status_code == 404
        and err.error_type == INDEX_NOT_FOUND_TYPE
    )


def error_message(err: BaseException) -> str:
    """Backend reason when it carries one, otherwise the exception text."""
    reason = getattr(err, "reason", "")
    if reason:
        return reason
    return str(err)


def prettify_error_message(raw: Optional[str]) -> str:
    """Rewrite permission denials into an actionable sentence."""
    if not raw or raw == "undefined":
        return UNKNOWN_ERROR_MESSAGE
    match = _PERMISSIONS_ERROR_PATTERN.search(raw)
    if match is None:
        return raw
    return f"User {match.group(2)} has no permissions to [{match.group(1)}]."
