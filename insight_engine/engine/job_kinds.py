"""Descriptors for the two job kinds served by the engine.

Everything that differs between detectors and forecasters (backend paths,
id field, task types, response keys, sortable fields) is captured here so the
query, pagination and grouping code can stay kind-agnostic.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple, Type, Union

from .. import config
from .states import DetectorState, ForecasterState

State = Union[DetectorState, ForecasterState]


@dataclass(frozen=True, eq=False)
class JobKind:
    """Static description of one job kind."""

    name: str
    id_field: str
    api_base: str
    custom_result_index_prefix: str
    realtime_task_types: Tuple[str, ...]
    one_shot_task_types: Tuple[str, ...]
    max_jobs: int
    state_enum: Type[State]
    default_state: State
    init_failure_state: State
    # Request sort key -> result document field.
    sortable_result_fields: Dict[str, str]
    # Backend GET-job response keys.
    source_key: str
    job_key: str
    realtime_task_key: str
    one_shot_task_key: str
    # List response keys.
    total_key: str
    list_key: str
    activity_count_key: str
    activity_time_key: str
    activity_requires_positive_grade: bool
    supports_anomaly_threshold: bool

    @property
    def is_forecaster(self) -> bool:
        return self.name == "forecaster"

    def __repr__(self) -> str:
        return f"JobKind({self.name})"


DETECTOR = JobKind(
    name="detector",
    id_field="detector_id",
    api_base=config.DETECTOR_API_BASE,
    custom_result_index_prefix=config.CUSTOM_AD_RESULT_INDEX_PREFIX,
    realtime_task_types=tuple(config.REALTIME_TASK_TYPES),
    one_shot_task_types=tuple(config.HISTORICAL_TASK_TYPES),
    max_jobs=config.MAX_DETECTORS,
    state_enum=DetectorState,
    default_state=DetectorState.DISABLED,
    init_failure_state=DetectorState.INIT_FAILURE,
    sortable_result_fields={
        "anomalyGrade": "anomaly_grade",
        "confidence": "confidence",
        "data_start_time": "data_start_time",
        "data_end_time": "data_end_time",
    },
    source_key="anomaly_detector",
    job_key="anomaly_detector_job",
    realtime_task_key="realtime_detection_task",
    one_shot_task_key="historical_analysis_task",
    total_key="totalDetectors",
    list_key="detectorList",
    activity_count_key="totalAnomalies",
    activity_time_key="lastActiveAnomaly",
    activity_requires_positive_grade=True,
    supports_anomaly_threshold=True,
)

FORECASTER = JobKind(
    name="forecaster",
    id_field="forecaster_id",
    api_base=config.FORECASTER_API_BASE,
    custom_result_index_prefix=config.CUSTOM_FORECAST_RESULT_INDEX_PREFIX,
    realtime_task_types=tuple(config.FORECAST_REALTIME_TASK_TYPES),
    one_shot_task_types=tuple(config.FORECAST_RUN_ONCE_TASK_TYPES),
    max_jobs=config.MAX_FORECASTERS,
    state_enum=ForecasterState,
    default_state=ForecasterState.INACTIVE_NOT_STARTED,
    init_failure_state=ForecasterState.INIT_ERROR,
    sortable_result_fields={
        "data_start_time": "data_start_time",
        "data_end_time": "data_end_time",
    },
    source_key="forecaster",
    job_key="forecaster_job",
    realtime_task_key="realtime_task",
    one_shot_task_key="run_once_task",
    total_key="totalForecasters",
    list_key="forecasterList",
    activity_count_key="totalActivity",
    activity_time_key="lastActive",
    activity_requires_positive_grade=False,
    supports_anomaly_threshold=False,
)

DEFAULT_RESULT_SORT_FIELD = "data_start_time"
