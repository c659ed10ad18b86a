"""Tests for snake_case to camelCase job field projection."""
from insight_engine.engine.job_fields import (
    camelize_keys,
    static_fields,
    task_and_job_fields,
    to_camel,
)
from insight_engine.engine.job_kinds import DETECTOR, FORECASTER
from insight_engine.engine.states import DetectorState, ForecasterState


def test_to_camel():
    assert to_camel("last_update_time") == "lastUpdateTime"
    assert to_camel("name") == "name"
    assert to_camel("_id") == "id"


def test_camelize_nested():
    assert camelize_keys({"window_delay": {"period": {"interval_unit": "m"}}, "list_of": [{"a_b": 1}]}) == {
        "windowDelay": {"period": {"intervalUnit": "m"}},
        "listOf": [{"aB": 1}],
    }


def test_static_fields_keep_query_dsl_verbatim():
    source = {
        "name": "cpu",
        "filter_query": {"match_all": {}},
        "ui_metadata": {"features": {"cpu_avg": {"aggregation_of": "cpu"}}},
        "feature_attributes": [{"feature_id": "f1", "feature_name": "cpu_avg",
                                "aggregation_query": {"cpu_avg": {"avg": {"field": "cpu"}}}}],
        "anomaly_detector_job": {"enabled": True},
        "realtime_detection_task": {"state": "RUNNING"},
    }
    fields = static_fields(DETECTOR, source)
    assert fields["name"] == "cpu"
    assert fields["filterQuery"] == {"match_all": {}}
    assert fields["uiMetadata"] == source["ui_metadata"]
    assert fields["featureAttributes"] == [{
        "featureId": "f1",
        "featureName": "cpu_avg",
        "aggregationQuery": {"cpu_avg": {"avg": {"field": "cpu"}}},
    }]
    assert "anomalyDetectorJob" not in fields
    assert "realtimeDetectionTask" not in fields


def test_detector_without_realtime_task_uses_job_flag():
    assert task_and_job_fields(DETECTOR, None, None, {"enabled": True})["curState"] is DetectorState.RUNNING
    assert task_and_job_fields(DETECTOR, None, None, {})["curState"] is DetectorState.DISABLED


def test_detector_historical_task_fields():
    one_shot = {
        "task_id": "t-1",
        "state": "FINISHED",
        "task_progress": 1.0,
        "error": "",
        "detector": {"detection_date_range": {"start_time": 1, "end_time": 2}},
    }
    fields = task_and_job_fields(DETECTOR, {"state": "RUNNING"}, one_shot, {"enabled": True})
    assert fields["curState"] is DetectorState.RUNNING
    assert fields["taskId"] == "t-1"
    assert fields["taskState"] is DetectorState.FINISHED
    assert fields["detectionDateRange"] == {"startTime": 1, "endTime": 2}


def test_no_one_shot_task_has_no_date_range():
    assert "detectionDateRange" not in task_and_job_fields(DETECTOR, None, None, None)


def test_forecaster_fields():
    realtime = {"state": "STOPPED", "last_update_time": 10, "init_progress": 0.5}
    one_shot = {"task_id": "t-2", "state": "TEST_COMPLETE", "last_update_time": 20, "error": "late data"}
    fields = task_and_job_fields(FORECASTER, realtime, one_shot, {"enabled": False, "disabled_time": 5})
    assert fields["curState"] is ForecasterState.TEST_COMPLETE
    assert fields["stateError"] == "late data."
    assert fields["initProgress"]["percentageStr"] == "50%"
    assert fields["realTimeLastUpdateTime"] == 10
    assert fields["runOnceLastUpdateTime"] == 20
    assert fields["taskState"] is ForecasterState.TEST_COMPLETE
    assert fields["disabledTime"] == 5
