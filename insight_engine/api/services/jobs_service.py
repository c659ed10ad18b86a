"""List and detail views for detectors and forecasters."""
from __future__ import annotations

from typing import Any, Dict

from ...engine.job_detail import get_job_detail
from ...engine.job_kinds import JobKind
from ...engine.job_list import JobListParams, list_jobs
from ...search.client import SearchBackend


class JobsService:
    """Thin wrapper binding the engine's job views to one backend."""

    def __init__(self, backend: SearchBackend) -> None:
        self.backend = backend

    async def list(self, kind: JobKind, params: JobListParams) -> Dict[str, Any]:
        return await list_jobs(self.backend, kind, params)

    async def detail(self, kind: JobKind, job_id: str) -> Dict[str, Any]:
        return await get_job_detail(self.backend, kind, job_id)
