"""
Async REST client for the detector / forecaster plugin APIs.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

import httpx

from ..config import FORECASTER_API_BASE
from .errors import SearchBackendError

if TYPE_CHECKING:
    from ..engine.job_kinds import JobKind

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": "insight-engine",
}

_TRANSIENT_STATUS = (429, 500, 502, 503, 504)


@dataclass
class RetryPolicy:
    """HTTP retry settings for backend requests."""
    max_retries: int = 2
    backoff_seconds: float = 0.25
    timeout_seconds: float = 30.0


class SearchBackend(Protocol):
    """Protocol defining the backend calls the engine relies on."""

    async def search_results(
        self, kind: "JobKind", body: Dict[str, Any], result_index: Optional[str] = None
    ) -> Dict[str, Any]:
        ...

    async def search_tasks(self, kind: "JobKind", body: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def search_jobs(self, kind: "JobKind", body: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def get_job(self, kind: "JobKind", job_id: str) -> Dict[str, Any]:
        ...

    async def top_forecast_results(self, forecaster_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        ...


def _backend_error(resp: httpx.Response) -> SearchBackendError:
    """Lift ``error.type`` / ``error.reason`` out of a failed response."""
    error_type = ""
    reason = ""
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            error_type = str(error.get("type") or "")
            reason = str(error.get("reason") or "")
        elif isinstance(error, str):
            reason = error
    if not reason:
        reason = resp.text.strip()
    return SearchBackendError(resp.status_code, error_type, reason)


class SearchClient:
    """
    httpx wrapper around the backend plugin REST endpoints with:
      - basic auth and TLS verification settings
      - retry with exponential backoff on 429 / 5xx / transport errors
      - an injectable transport for tests
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_certs: bool = True,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = str(base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("SearchClient requires a non-empty base_url")
        self.retry_policy = retry_policy or RetryPolicy()
        self.logger = logger or logging.getLogger(__name__)
        auth = (username, password or "") if username else None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=auth,
            verify=verify_certs,
            timeout=self.retry_policy.timeout_seconds,
            headers=DEFAULT_HEADERS,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request_with_retries(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send one request, retrying transient failures.

        Raises
        ------
        SearchBackendError
            Non-2xx reply (immediately for client errors, after the retry
            budget for transient ones) or the backend stayed unreachable.
        """
        last_err: Optional[SearchBackendError] = None
        for attempt in range(self.retry_policy.max_retries + 1):
            try:
                resp = await self._client.request(
                    method.upper(),
                    path,
                    params=params,
                    json=json_body,
                )
            except httpx.TransportError as exc:
                self.logger.warning(
                    "Search backend transport error method=%s path=%s attempt=%d: %s",
                    method.upper(), path, attempt + 1, exc,
                )
                last_err = SearchBackendError(
                    503, "connection_error", f"Search backend unreachable: {exc}"
                )
            else:
                if resp.status_code in _TRANSIENT_STATUS:
                    self.logger.warning(
                        "Transient status=%s method=%s path=%s attempt=%d",
                        resp.status_code, method.upper(), path, attempt + 1,
                    )
                    last_err = _backend_error(resp)
                elif resp.is_error:
                    raise _backend_error(resp)
                else:
                    try:
                        payload = resp.json()
                    except ValueError as exc:
                        raise SearchBackendError(
                            resp.status_code, "invalid_response", f"Response is not JSON: {exc}"
                        ) from exc
                    if not isinstance(payload, dict):
                        raise SearchBackendError(
                            resp.status_code,
                            "invalid_response",
                            f"Unexpected payload type: {type(payload).__name__}",
                        )
                    return payload

            if attempt < self.retry_policy.max_retries:
                await asyncio.sleep(self.retry_policy.backoff_seconds * (2 ** attempt))

        if last_err is None:
            raise SearchBackendError(
                503,
                "connection_error",
                f"No request sent for {method.upper()} {path}: retry budget is {self.retry_policy.max_retries}",
            )
        raise last_err

    async def search_results(
        self, kind: "JobKind", body: Dict[str, Any], result_index: Optional[str] = None
    ) -> Dict[str, Any]:
        """Search the default result index, or a custom one when given."""
        path = f"{kind.api_base}/results/_search"
        if result_index:
            path = f"{path}/{result_index}"
        return await self._request_with_retries("POST", path, json_body=body)

    async def search_tasks(self, kind: "JobKind", body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request_with_retries("POST", f"{kind.api_base}/tasks/_search", json_body=body)

    async def search_jobs(self, kind: "JobKind", body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request_with_retries("POST", f"{kind.api_base}/_search", json_body=body)

    async def get_job(self, kind: "JobKind", job_id: str) -> Dict[str, Any]:
        """Fetch one job definition together with its job record and latest tasks."""
        return await self._request_with_retries(
            "GET",
            f"{kind.api_base}/{job_id}",
            params={"job": "true", "task": "true"},
        )

    async def top_forecast_results(self, forecaster_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request_with_retries(
            "POST",
            f"{FORECASTER_API_BASE}/{forecaster_id}/results/_topForecasts",
            json_body=body,
        )
