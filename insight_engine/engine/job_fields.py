"""Backend snake_case job documents to the camelCase shape the UI consumes."""
from __future__ import annotations

from typing import Any, Dict, Optional

from .job_kinds import JobKind
from .states import DetectorState
from .task_state import (
    Task,
    one_shot_state,
    process_task_error,
    resolve_state,
    task_init_progress,
    task_state,
)

# Passed through verbatim; their inner keys are query DSL, not job fields.
_OPAQUE_FIELDS = ("filter_query", "ui_metadata")
_DROPPED_FIELDS = ("feature_query", "feature_attributes", "anomaly_detection_task")


def to_camel(key: str) -> str:
    """``last_update_time`` -> ``lastUpdateTime``; leading underscores are dropped."""
    parts = [p for p in str(key).split("_") if p]
    if not parts:
        return key
    head = parts[0][:1].lower() + parts[0][1:]
    return head + "".join(p[:1].upper() + p[1:] for p in parts[1:])


def camelize_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {to_camel(k): camelize_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [camelize_keys(v) for v in value]
    return value


def _feature_attributes(source: Dict[str, Any]) -> list:
    features = []
    for feature in source.get("feature_attributes") or []:
        converted = camelize_keys({k: v for k, v in feature.items() if k != "aggregation_query"})
        converted["aggregationQuery"] = feature.get("aggregation_query")
        features.append(converted)
    return features


def static_fields(kind: JobKind, source: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Camel-cased job definition with job and task sub-documents removed."""
    source = source or {}
    skipped = set(_OPAQUE_FIELDS + _DROPPED_FIELDS) | {
        kind.job_key,
        kind.realtime_task_key,
        kind.one_shot_task_key,
    }
    fields = camelize_keys({k: v for k, v in source.items() if k not in skipped})
    fields["filterQuery"] = source.get("filter_query") or {}
    fields["featureAttributes"] = _feature_attributes(source)
    fields["uiMetadata"] = source.get("ui_metadata") or {}
    return fields


def _date_range(task: Dict[str, Any]) -> Dict[str, Any]:
    # Legacy historical tasks keep the range under the embedded detector.
    date_range = task.get("detection_date_range")
    if date_range is None:
        date_range = (task.get("detector") or {}).get("detection_date_range")
    date_range = date_range or {}
    return {"startTime": date_range.get("start_time"), "endTime": date_range.get("end_time")}


def task_and_job_fields(
    kind: JobKind,
    realtime_task: Task,
    one_shot_task: Task,
    job: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """Lifecycle, progress and one-shot task fields for the detail view."""
    job = job or {}
    fields: Dict[str, Any] = {
        "enabled": bool(job.get("enabled", False)),
        "enabledTime": job.get("enabled_time"),
        "disabledTime": job.get("disabled_time"),
    }

    if realtime_task or kind.is_forecaster:
        fields["curState"] = resolve_state(kind, realtime_task, one_shot_task)
        continuous_error = (realtime_task or {}).get("error") or ""
        if kind.is_forecaster and not continuous_error:
            continuous_error = (one_shot_task or {}).get("error") or ""
        fields["stateError"] = process_task_error(continuous_error)
        fields["initProgress"] = task_init_progress(realtime_task)
    else:
        fields["curState"] = DetectorState.RUNNING if fields["enabled"] else DetectorState.DISABLED

    fields["realTimeLastUpdateTime"] = (realtime_task or {}).get("last_update_time")
    fields["runOnceLastUpdateTime"] = (one_shot_task or {}).get("last_update_time")

    one_shot = one_shot_task or {}
    fields["taskId"] = one_shot.get("task_id") or one_shot.get("id")
    fields["taskState"] = one_shot_state(kind, one_shot_task) if kind.is_forecaster else task_state(kind, one_shot_task)
    fields["taskProgress"] = one_shot.get("task_progress")
    fields["taskError"] = process_task_error(one_shot.get("error"))
    if one_shot:
        fields["detectionDateRange"] = _date_range(one_shot)
    return fields
