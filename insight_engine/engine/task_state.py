"""Derive one authoritative lifecycle state from a job's task records.

A job has two independently updated tasks: the continuous (real-time) task
and the one-shot (historical / run-once) task.  Neither stores the state the
UI shows; it is derived here from the raw backend strings.  Everything in
this module is pure: task records are plain ``dict`` sources (or ``None``
when absent) and no I/O is performed.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from ..config import (
    OPENSEARCH_EXCEPTION_PREFIX,
    STACK_TRACE_PATTERN,
    STOPPED_DETECTOR_MARKER,
    UNKNOWN_PREDICTION_MARKER,
)
from .job_kinds import JobKind, State
from .states import (
    FORECASTER_INACTIVE_STATES,
    FORECASTER_TEST_STATES,
    DetectorState,
    ForecasterState,
)

logger = logging.getLogger(__name__)

Task = Optional[Dict[str, Any]]

# Raw backend names that map 1:1 onto an enum member.
_DETECTOR_PASSTHROUGH = frozenset({
    "DISABLED",
    "INIT",
    "RUNNING",
    "FINISHED",
    "FEATURE_REQUIRED",
    "INIT_FAILURE",
    "UNEXPECTED_FAILURE",
})
_FORECASTER_PASSTHROUGH = frozenset(
    s.name for s in ForecasterState if s is not ForecasterState.UNKNOWN
)


def process_task_error(error: Optional[str]) -> str:
    """Strip the backend exception prefix and terminate with a period.

    Empty text stays empty.
    """
    text = (error or "").replace(OPENSEARCH_EXCEPTION_PREFIX, "", 1)
    if not text or text.endswith("."):
        return text
    return text + "."


def _is_stack_trace(error: str) -> bool:
    return STACK_TRACE_PATTERN in error


def _normalize_detector(raw: str, error: str) -> DetectorState:
    if raw == "CREATED":
        return DetectorState.INIT
    if raw == "STOPPED":
        return DetectorState.DISABLED
    if raw == "FAILED":
        if _is_stack_trace(error):
            return DetectorState.UNEXPECTED_FAILURE
        return DetectorState.INIT_FAILURE
    if raw in _DETECTOR_PASSTHROUGH:
        return DetectorState[raw]
    logger.warning("Unrecognised detector task state %r", raw)
    return DetectorState.UNKNOWN


def _normalize_forecaster(raw: str, error: str) -> ForecasterState:
    if raw == "CREATED":
        return ForecasterState.INITIALIZING_FORECAST
    if raw in ("STOPPED", "INACTIVE"):
        return ForecasterState.INACTIVE_STOPPED
    if raw == "FAILED":
        if _is_stack_trace(error):
            return ForecasterState.UNEXPECTED_FAILURE
        return ForecasterState.INIT_ERROR
    if raw in _FORECASTER_PASSTHROUGH:
        return ForecasterState[raw]
    logger.warning("Unrecognised forecaster task state %r", raw)
    return ForecasterState.UNKNOWN


def normalize_raw_state(kind: JobKind, raw: Optional[str], error: Optional[str] = "") -> State:
    """Map a raw backend state string onto the kind's closed enumeration.

    ``None`` means the task never reported a state and yields the kind's
    default inactive state.  Unrecognised strings yield ``UNKNOWN``.
    """
    if raw is None:
        return kind.default_state
    processed = process_task_error(error)
    if kind.is_forecaster:
        return _normalize_forecaster(str(raw), processed)
    return _normalize_detector(str(raw), processed)


def task_state(kind: JobKind, task: Task) -> State:
    """State of a single task on its own; absent tasks give the default."""
    if not task:
        return kind.default_state
    return normalize_raw_state(kind, task.get("state"), task.get("error"))


def one_shot_state(kind: JobKind, task: Task) -> State:
    """Normalize a one-shot task.

    A forecaster run-once task sits in ``INACTIVE`` with no error before it
    enters its test phase; that window is reported as ``INIT_TEST``.
    """
    if not task:
        return kind.default_state
    if kind.is_forecaster and task.get("state") == "INACTIVE" and not task.get("error"):
        return ForecasterState.INIT_TEST
    return task_state(kind, task)


def _last_update(task: Task) -> float:
    if not task:
        return 0
    value = task.get("last_update_time")
    if value is None:
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric last_update_time %r", value)
        return 0


def resolve_state(kind: JobKind, continuous_task: Task, one_shot_task: Task = None) -> State:
    """Combine the continuous and one-shot tasks into one lifecycle state.

    For forecasters, an idle continuous task yields to a strictly newer
    one-shot task that is in a test state.  Equal or missing timestamps keep
    the continuous state.
    """
    state = task_state(kind, continuous_task)

    if (
        kind.is_forecaster
        and state in FORECASTER_INACTIVE_STATES
        and one_shot_task
        and _last_update(one_shot_task) > _last_update(continuous_task)
    ):
        candidate = one_shot_state(kind, one_shot_task)
        if candidate in FORECASTER_TEST_STATES:
            state = candidate
    return state


def refine_detector_state(state: State, error: Optional[str], feature_count: int) -> State:
    """Reclassify a stopped detector from its stop reason and feature list.

    An end-run stop ("Stopped detector ...") is an initialization failure,
    except for the unknown-prediction case which is a bug.  A stopped
    detector without features needs features before it can start.
    """
    if state is not DetectorState.DISABLED:
        return state
    text = error or ""
    if STOPPED_DETECTOR_MARKER in text:
        if UNKNOWN_PREDICTION_MARKER in text:
            return DetectorState.UNEXPECTED_FAILURE
        return DetectorState.INIT_FAILURE
    if feature_count == 0:
        return DetectorState.FEATURE_REQUIRED
    return state


def state_error(continuous_task: Task, one_shot_task: Task = None) -> str:
    """Error text for the list view: continuous task first, then one-shot."""
    raw = ""
    if continuous_task:
        raw = continuous_task.get("error") or ""
    if not raw and one_shot_task:
        raw = one_shot_task.get("error") or ""
    return process_task_error(raw)


def task_init_progress(task: Task) -> Optional[Dict[str, Any]]:
    """Initialization progress as ``{percentageStr, estimatedMinutesLeft}``."""
    if not task or task.get("init_progress") is None:
        return None
    try:
        pct = math.floor(float(task["init_progress"]) * 100 + 0.5)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric init_progress %r", task["init_progress"])
        return None
    return {
        "percentageStr": f"{pct}%",
        "estimatedMinutesLeft": task.get("estimated_minutes_left"),
    }
