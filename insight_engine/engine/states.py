"""Lifecycle state enumerations for detectors and forecasters."""
from __future__ import annotations

import enum


class DetectorState(str, enum.Enum):
    DISABLED = "Stopped"
    INIT = "Initializing"
    RUNNING = "Running"
    FINISHED = "Finished"
    FEATURE_REQUIRED = "Feature required"
    INIT_FAILURE = "Initialization failure"
    UNEXPECTED_FAILURE = "Unexpected failure"
    UNKNOWN = "Unknown"


class ForecasterState(str, enum.Enum):
    INACTIVE_NOT_STARTED = "INACTIVE_NOT_STARTED"
    INACTIVE_STOPPED = "INACTIVE_STOPPED"
    AWAITING_DATA_TO_INIT = "AWAITING_DATA_TO_INIT"
    AWAITING_DATA_TO_RESTART = "AWAITING_DATA_TO_RESTART"
    INITIALIZING_FORECAST = "INITIALIZING_FORECAST"
    INIT_TEST = "INIT_TEST"
    TEST_COMPLETE = "TEST_COMPLETE"
    INIT_TEST_FAILED = "INIT_TEST_FAILED"
    INIT_ERROR = "INIT_ERROR"
    RUNNING = "RUNNING"
    FORECAST_FAILURE = "FORECAST_FAILURE"
    UNEXPECTED_FAILURE = "UNEXPECTED_FAILURE"
    UNKNOWN = "UNKNOWN"


# One-shot outcomes that may surface while the continuous task is idle.
FORECASTER_TEST_STATES = frozenset({
    ForecasterState.INIT_TEST,
    ForecasterState.TEST_COMPLETE,
    ForecasterState.INIT_TEST_FAILED,
})

FORECASTER_INACTIVE_STATES = frozenset({
    ForecasterState.INACTIVE_STOPPED,
    ForecasterState.INACTIVE_NOT_STARTED,
})
