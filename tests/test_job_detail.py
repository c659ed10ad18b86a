"""Tests for the single-job detail view."""
import pytest

from insight_engine.engine.job_detail import get_job_detail
from insight_engine.engine.job_kinds import DETECTOR, FORECASTER
from insight_engine.engine.states import DetectorState, ForecasterState
from insight_engine.search.errors import SearchBackendError


def _not_found(kind, job_id):
    raise SearchBackendError(404, "status_exception", "missing")


async def test_detector_detail(fake_backend):
    fake_backend.on_get_job = lambda kind, job_id: {
        "_id": job_id,
        "_seq_no": 3,
        "_primary_term": 1,
        "anomaly_detector": {"name": "cpu", "feature_attributes": [{"feature_id": "f1"}]},
        "anomaly_detector_job": {"enabled": True, "enabled_time": 10},
        "realtime_detection_task": {"state": "INIT", "init_progress": 0.25, "estimated_minutes_left": 3},
    }
    detail = await get_job_detail(fake_backend, DETECTOR, "d1")
    assert detail["id"] == "d1"
    assert detail["name"] == "cpu"
    assert detail["enabled"] is True
    assert detail["curState"] is DetectorState.INIT
    assert detail["initProgress"] == {"percentageStr": "25%", "estimatedMinutesLeft": 3}
    assert fake_backend.calls_to("get_job") == [("get_job", "detector", "d1")]


async def test_detector_end_run_stop_is_init_failure(fake_backend):
    fake_backend.on_get_job = lambda kind, job_id: {
        "_id": job_id,
        "anomaly_detector": {"feature_attributes": [{"feature_id": "f1"}]},
        "realtime_detection_task": {"state": "STOPPED", "error": "Stopped detector: no data"},
    }
    detail = await get_job_detail(fake_backend, DETECTOR, "d1")
    assert detail["curState"] is DetectorState.INIT_FAILURE
    assert detail["stateError"] == "Stopped detector: no data."


async def test_forecaster_detail(fake_backend):
    fake_backend.on_get_job = lambda kind, job_id: {
        "_id": job_id,
        "forecaster": {"name": "sales", "last_update_time": 7},
        "forecaster_job": {"enabled": True},
        "realtime_task": {"state": "RUNNING"},
    }
    detail = await get_job_detail(fake_backend, FORECASTER, "f1")
    assert detail["name"] == "sales"
    assert detail["lastUpdateTime"] == 7
    assert detail["curState"] is ForecasterState.RUNNING


async def test_missing_forecaster_is_empty(fake_backend):
    fake_backend.on_get_job = _not_found
    assert await get_job_detail(fake_backend, FORECASTER, "gone") == {}


async def test_missing_detector_propagates(fake_backend):
    fake_backend.on_get_job = _not_found
    with pytest.raises(SearchBackendError):
        await get_job_detail(fake_backend, DETECTOR, "gone")
