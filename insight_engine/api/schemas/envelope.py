"""Standard API response envelope: ``{ok, response?, error?}``."""
from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, model_serializer

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Generic API response wrapper.

    Backend faults are reported as ``ok=False`` with HTTP 200, so callers
    must check ``ok`` rather than the status code.
    """

    ok: bool = True
    response: Optional[T] = None
    error: Optional[str] = None

    @model_serializer(mode="wrap")
    def _drop_absent(self, handler):
        data = handler(self)
        if self.ok:
            data.pop("error", None)
        else:
            data.pop("response", None)
        return data

    @classmethod
    def success(cls, response: Any) -> "ApiResponse":
        """Build a success response."""
        return cls(ok=True, response=response)

    @classmethod
    def fail(cls, error: str) -> "ApiResponse":
        """Build an error response."""
        return cls(ok=False, error=error)
