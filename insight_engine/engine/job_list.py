"""
List view: static job metadata joined with task state and 24h activity.

Three independent backend reads (job search, latest continuous tasks, latest
one-shot tasks) run concurrently; the activity aggregation then runs once for
every listed job rather than once per job.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..config import ACTIVITY_WINDOW_END, ACTIVITY_WINDOW_START
from ..search.client import SearchBackend
from ..search.errors import SearchBackendError, is_benign_missing_index
from .job_fields import static_fields
from .job_kinds import JobKind
from .result_query import TASK_ID_FIELD, ANOMALY_GRADE_FIELD, normalize_sort_direction
from .task_state import refine_detector_state, resolve_state, state_error

logger = logging.getLogger(__name__)

# Request sort key -> job index field.  Anything else is sorted in memory.
STATIC_SORT_FIELDS = {
    "name": "name.keyword",
    "indices": "indices.keyword",
    "lastUpdateTime": "last_update_time",
}

ACTIVITY_AGG = "unique_jobs"
ACTIVITY_COUNT_AGG = "total_in_24hr"
ACTIVITY_TIME_AGG = "latest_activity_time"
LATEST_TASKS_AGG = "latest_tasks"


@dataclass(frozen=True)
class JobListParams:
    from_: int = 0
    size: int = 20
    search: str = ""
    indices: str = ""
    sort_direction: str = "desc"
    sort_field: str = "name"


def wildcard_query(text: str) -> str:
    """``"cpu-usage"`` -> ``"*cpu* *usage*"``."""
    return "*" + "* *".join(text.strip().split("-")) + "*"


def static_search_query(kind: JobKind, params: JobListParams) -> Dict[str, Any]:
    must: List[Dict[str, Any]] = []
    if params.search.strip():
        must.append({
            "query_string": {
                "fields": ["name", "description"],
                "default_operator": "AND",
                "query": wildcard_query(params.search),
            }
        })
    if params.indices.strip():
        must.append({
            "query_string": {
                "fields": ["indices"],
                "default_operator": "AND",
                "query": wildcard_query(params.indices),
            }
        })

    direction = normalize_sort_direction(params.sort_direction)
    static_sort = STATIC_SORT_FIELDS.get(params.sort_field)
    if static_sort:
        body: Dict[str, Any] = {
            "sort": {static_sort: direction},
            "from": params.from_,
            "size": params.size,
        }
    else:
        # Activity sorts need every job before slicing.
        body = {"from": 0, "size": kind.max_jobs}
    body["query"] = {"bool": {"must": must}}
    return body


def latest_tasks_query(kind: JobKind, realtime: bool) -> Dict[str, Any]:
    """Newest task per job among ``is_latest`` tasks of the given family.

    Several tasks can carry ``is_latest`` at once, so the newest by
    ``execution_start_time`` wins.
    """
    task_types = kind.realtime_task_types if realtime else kind.one_shot_task_types
    return {
        "size": 0,
        "query": {
            "bool": {
                "filter": [
                    {"term": {"is_latest": "true"}},
                    {"terms": {"task_type": list(task_types)}},
                ]
            }
        },
        "aggs": {
            f"{kind.name}s": {
                "terms": {"field": kind.id_field, "size": kind.max_jobs},
                "aggs": {
                    LATEST_TASKS_AGG: {
                        "top_hits": {"size": 1, "sort": {"execution_start_time": "desc"}}
                    }
                },
            }
        },
    }


def activity_query(kind: JobKind, job_ids: List[str]) -> Dict[str, Any]:
    """Bulk 24h activity count and latest activity time per job."""
    must: List[Dict[str, Any]] = [{"terms": {kind.id_field: list(job_ids)}}]
    if kind.activity_requires_positive_grade:
        must.append({"range": {ANOMALY_GRADE_FIELD: {"gt": 0}}})
    return {
        "size": 0,
        "query": {
            "bool": {
                "must": must,
                "must_not": {"exists": {"field": TASK_ID_FIELD}},
            }
        },
        "aggs": {
            ACTIVITY_AGG: {
                "terms": {"field": kind.id_field, "size": len(job_ids)},
                "aggs": {
                    ACTIVITY_COUNT_AGG: {
                        "filter": {
                            "range": {
                                "data_start_time": {
                                    "gte": ACTIVITY_WINDOW_START,
                                    "lte": ACTIVITY_WINDOW_END,
                                }
                            }
                        }
                    },
                    ACTIVITY_TIME_AGG: {"max": {"field": "data_start_time"}},
                },
            }
        },
    }


async def _latest_tasks(backend: SearchBackend, kind: JobKind, realtime: bool) -> Dict[str, Dict[str, Any]]:
    """Map job id to its newest task hit (``_id`` plus ``_source``)."""
    try:
        response = await backend.search_tasks(kind, latest_tasks_query(kind, realtime))
    except SearchBackendError as err:
        if is_benign_missing_index(err):
            logger.info("No %s task index yet; treating as no tasks", kind.name)
            return {}
        raise
    buckets = response.get("aggregations", {}).get(f"{kind.name}s", {}).get("buckets", [])
    tasks: Dict[str, Dict[str, Any]] = {}
    for bucket in buckets:
        hits = bucket.get(LATEST_TASKS_AGG, {}).get("hits", {}).get("hits", [])
        if hits:
            tasks[bucket["key"]] = hits[0]
    return tasks


async def _activity(backend: SearchBackend, kind: JobKind, job_ids: List[str]) -> Dict[str, Dict[str, Any]]:
    if not job_ids:
        return {}
    try:
        response = await backend.search_results(kind, activity_query(kind, job_ids))
    except SearchBackendError as err:
        if is_benign_missing_index(err):
            return {}
        raise
    activity = {}
    for bucket in response.get("aggregations", {}).get(ACTIVITY_AGG, {}).get("buckets", []):
        activity[bucket["key"]] = {
            kind.activity_count_key: bucket.get(ACTIVITY_COUNT_AGG, {}).get("doc_count", 0),
            kind.activity_time_key: bucket.get(ACTIVITY_TIME_AGG, {}).get("value") or 0,
        }
    return activity


def _sort_value(value: Any):
    if isinstance(value, enum.Enum):
        value = value.value
    if value is None:
        return (0, 0.0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, float(value))
    return (2, str(value))


def _job_item(
    kind: JobKind,
    hit: Dict[str, Any],
    realtime_hit: Optional[Dict[str, Any]],
    one_shot_hit: Optional[Dict[str, Any]],
    activity: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "id": hit.get("_id"),
        "primaryTerm": hit.get("_primary_term"),
        "seqNo": hit.get("_seq_no"),
        **static_fields(kind, hit.get("_source")),
    }
    item.setdefault("description", "")
    item.setdefault("indices", [])
    item.setdefault("lastUpdateTime", 0)

    realtime = (realtime_hit or {}).get("_source")
    one_shot = (one_shot_hit or {}).get("_source")
    state = resolve_state(kind, realtime, one_shot)
    error = state_error(realtime, one_shot)
    if not kind.is_forecaster:
        state = refine_detector_state(state, error, len(item["featureAttributes"]))

    item["curState"] = state
    item["stateError"] = error
    item["enabledTime"] = (realtime or {}).get("execution_start_time")
    item["taskId"] = (one_shot_hit or {}).get("_id")
    item["realTimeLastUpdateTime"] = (realtime or {}).get("last_update_time")
    item["runOnceLastUpdateTime"] = (one_shot or {}).get("last_update_time")
    defaults = {kind.activity_count_key: 0, kind.activity_time_key: 0}
    item.update(activity or defaults)
    return item


async def list_jobs(backend: SearchBackend, kind: JobKind, params: JobListParams) -> Dict[str, Any]:
    """Build ``{total<Kind>s, <kind>List}`` for the list view.

    Raises
    ------
    SearchBackendError
        Any backend fault other than a missing index.
    InvalidRequestError
        ``sort_direction`` is not ASC / DESC.
    """
    static_body = static_search_query(kind, params)
    static_resp, realtime_tasks, one_shot_tasks = await asyncio.gather(
        backend.search_jobs(kind, static_body),
        _latest_tasks(backend, kind, realtime=True),
        _latest_tasks(backend, kind, realtime=False),
        return_exceptions=True,
    )
    if isinstance(static_resp, BaseException) and is_benign_missing_index(static_resp):
        logger.info("No %s index yet; returning empty list", kind.name)
        return {kind.total_key: 0, kind.list_key: []}
    # All three queries have settled; surface the first failure in call order.
    for outcome in (static_resp, realtime_tasks, one_shot_tasks):
        if isinstance(outcome, BaseException):
            raise outcome

    hits = static_resp.get("hits", {}).get("hits", []) or []
    total = static_resp.get("hits", {}).get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)

    job_ids = [hit["_id"] for hit in hits if "_id" in hit]
    activity = await _activity(backend, kind, job_ids)

    items = [
        _job_item(
            kind,
            hit,
            realtime_tasks.get(hit.get("_id")),
            one_shot_tasks.get(hit.get("_id")),
            activity.get(hit.get("_id")),
        )
        for hit in hits
    ]

    if params.sort_field not in STATIC_SORT_FIELDS:
        reverse = normalize_sort_direction(params.sort_direction) == "desc"
        items.sort(key=lambda item: _sort_value(item.get(params.sort_field)), reverse=reverse)
        items = items[params.from_:params.from_ + params.size]

    logger.debug("Listed %d of %s %s(s)", len(items), total, kind.name)
    return {kind.total_key: total, kind.list_key: items}
