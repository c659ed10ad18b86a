"""Tests for result query construction."""
import json

import pytest

from insight_engine.engine.job_kinds import DETECTOR, FORECASTER
from insight_engine.engine.result_query import (
    InvalidRequestError,
    ResultQueryParams,
    build_result_query,
    date_range_filter,
    entity_list_query,
    parse_bool_flag,
    parse_entity_list,
    resolve_result_index,
    sort_clause,
)


def _filters(body):
    return body["query"]["bool"]["filter"]


class TestLiveVersusOneShot:
    def test_live_query_excludes_task_results(self):
        body = build_result_query(DETECTOR, "det-1", ResultQueryParams())
        assert {"term": {"detector_id": "det-1"}} in _filters(body)
        assert body["query"]["bool"]["must_not"] == {"exists": {"field": "task_id"}}

    def test_one_shot_query_filters_by_task_id(self):
        body = build_result_query(FORECASTER, "task-9", ResultQueryParams(is_one_shot=True))
        assert {"term": {"task_id": "task-9"}} in _filters(body)
        assert "must_not" not in body["query"]["bool"]

    def test_size_passed_through(self):
        body = build_result_query(DETECTOR, "d", ResultQueryParams(size=50))
        assert body["size"] == 50


class TestDateRange:
    def test_both_bounds(self):
        assert date_range_filter("data_end_time", "1000", 2000) == {
            "range": {"data_end_time": {"format": "epoch_millis", "gte": 1000, "lte": 2000}}
        }

    def test_one_sided(self):
        rng = date_range_filter("data_end_time", 0, 2000)["range"]["data_end_time"]
        assert "gte" not in rng and rng["lte"] == 2000

    def test_no_field_or_no_bounds(self):
        assert date_range_filter("", 1, 2) is None
        assert date_range_filter("data_end_time", 0, "") is None

    def test_malformed_bound_omits_filter(self, caplog):
        body = build_result_query(
            DETECTOR, "d", ResultQueryParams(field_name="data_end_time", start_time="yesterday")
        )
        assert not any("range" in f for f in _filters(body))
        assert "Wrong date range filter" in caplog.text


class TestOptionalFilters:
    def test_dawn_epoch(self):
        body = build_result_query(FORECASTER, "f", ResultQueryParams(dawn_epoch=1700000000000))
        assert {"range": {"execution_end_time": {"gte": 1700000000000}}} in _filters(body)

    def test_anomaly_threshold_for_detectors_only(self):
        det = build_result_query(DETECTOR, "d", ResultQueryParams(anomaly_threshold=0.5))
        fc = build_result_query(FORECASTER, "f", ResultQueryParams(anomaly_threshold=0.5))
        assert {"range": {"anomaly_grade": {"gt": 0.5}}} in _filters(det)
        assert not any("range" in f for f in _filters(fc))


class TestSorting:
    def test_allow_listed_field(self):
        assert sort_clause(DETECTOR, "anomalyGrade", "ASC") == {"anomaly_grade": "asc"}

    def test_unknown_field_ignored(self):
        assert sort_clause(FORECASTER, "anomalyGrade", "desc") is None
        body = build_result_query(FORECASTER, "f", ResultQueryParams(sort_field="nope"))
        assert "sort" not in body

    def test_bad_direction_rejected(self):
        with pytest.raises(InvalidRequestError):
            sort_clause(DETECTOR, "confidence", "sideways")


class TestEntityList:
    def test_two_entities_scenario(self):
        raw = json.dumps([{"host": "a", "region": "x"}, {"host": "b"}])
        query = entity_list_query(parse_entity_list(raw))
        assert query["bool"]["minimum_should_match"] == 1
        should = query["bool"]["should"]
        assert len(should) == 2
        first_must = should[0]["bool"]["must"]
        assert len(first_must) == 2
        nested = first_must[0]["nested"]
        assert nested["path"] == "entity"
        assert nested["query"]["bool"]["must"] == [
            {"term": {"entity.name": "host"}},
            {"term": {"entity.value": "a"}},
        ]
        assert len(should[1]["bool"]["must"]) == 1

    def test_entity_filter_added_to_query(self):
        params = ResultQueryParams(entity_list='[{"host": "a"}]')
        body = build_result_query(FORECASTER, "f", params)
        assert any("bool" in f and "should" in f["bool"] for f in _filters(body))

    def test_empty_list_means_no_filter(self):
        assert entity_list_query(parse_entity_list("[]")) is None
        assert parse_entity_list(None) == []

    def test_single_object_accepted(self):
        assert parse_entity_list('{"host": "a"}') == [{"host": "a"}]

    @pytest.mark.parametrize("raw", ["not json", '"host"', "[1, 2]"])
    def test_malformed_rejected(self, raw):
        with pytest.raises(InvalidRequestError):
            parse_entity_list(raw)


class TestResultIndex:
    def test_prefixed_index_honoured(self):
        index = "opensearch-ad-plugin-result-custom"
        assert resolve_result_index(DETECTOR, index) == index

    def test_unprefixed_index_falls_back(self):
        assert resolve_result_index(DETECTOR, "my-index") is None
        assert resolve_result_index(FORECASTER, "opensearch-ad-plugin-result-x") is None
        assert resolve_result_index(FORECASTER, "") is None


class TestBoolFlag:
    def test_parses_json_booleans(self):
        assert parse_bool_flag("true") is True
        assert parse_bool_flag("false") is False

    @pytest.mark.parametrize("raw", ["yes", "1", "null"])
    def test_rejects_anything_else(self, raw):
        with pytest.raises(InvalidRequestError):
            parse_bool_flag(raw)
