"""Detail view: one job definition merged with its job record and latest tasks."""
from __future__ import annotations

import logging
from typing import Any, Dict

from ..search.client import SearchBackend
from ..search.errors import SearchBackendError
from .job_fields import static_fields, task_and_job_fields
from .job_kinds import JobKind
from .task_state import refine_detector_state

logger = logging.getLogger(__name__)


async def get_job_detail(backend: SearchBackend, kind: JobKind, job_id: str) -> Dict[str, Any]:
    """Fetch ``job_id`` and flatten it into the detail-view shape.

    A forecaster that no longer exists yields ``{}`` so a detail page open on
    a deleted forecaster does not flash an error.

    Raises
    ------
    SearchBackendError
        Any other backend fault, including a missing detector.
    """
    try:
        response = await backend.get_job(kind, job_id)
    except SearchBackendError as err:
        if kind.is_forecaster and err.status_code == 404:
            logger.info("Forecaster %s not found; returning empty detail", job_id)
            return {}
        raise

    detail: Dict[str, Any] = {
        "id": response.get("_id", job_id),
        "primaryTerm": response.get("_primary_term"),
        "seqNo": response.get("_seq_no"),
        **static_fields(kind, response.get(kind.source_key)),
    }
    detail.update(task_and_job_fields(
        kind,
        response.get(kind.realtime_task_key),
        response.get(kind.one_shot_task_key),
        response.get(kind.job_key),
    ))
    if not kind.is_forecaster:
        detail["curState"] = refine_detector_state(
            detail["curState"],
            detail.get("stateError"),
            len(detail["featureAttributes"]),
        )
    return detail
