"""Detector endpoints against a fake backend."""
import json

from insight_engine.search.errors import SearchBackendError


def _result_doc(end, grade):
    return {
        "detector_id": "d1",
        "data_start_time": end - 60_000,
        "data_end_time": end,
        "anomaly_grade": grade,
        "confidence": 0.9,
        "feature_data": [{"feature_id": "f1", "feature_name": "cpu", "data": 0.5}],
    }


async def test_live_results(client, fake_backend, paged_results):
    docs = [_result_doc(3000, 0.7), _result_doc(1000, 0.0), _result_doc(2000, 0.2)]
    fake_backend.on_search_results = paged_results(docs)

    resp = await client.get("/api/detectors/d1/results/false", params={"size": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    response = body["response"]
    assert response["totalResults"] == 3
    assert [r["plotTime"] for r in response["results"]] == [1000, 2000, 3000]
    assert [r["anomalyGrade"] for r in response["results"]] == [0, 0.2, 0.7]
    assert len(response["featureResults"]["f1"]) == 3

    first_body = fake_backend.calls_to("search_results")[0][2]
    assert first_body["query"]["bool"]["must_not"] == {"exists": {"field": "task_id"}}
    assert first_body["size"] == 2


async def test_historical_results_use_task_id(client, fake_backend):
    resp = await client.get("/api/detectors/task-7/results/true")
    assert resp.json() == {"ok": True, "response": {"totalResults": 0, "results": [], "featureResults": {}}}
    first_body = fake_backend.calls_to("search_results")[0][2]
    assert {"term": {"task_id": "task-7"}} in first_body["query"]["bool"]["filter"]


async def test_custom_result_index_prefix_rule(client, fake_backend):
    await client.get("/api/detectors/d1/results/false/opensearch-ad-plugin-result-mine")
    await client.get("/api/detectors/d1/results/false/not-a-result-index")
    indices = [c[3] for c in fake_backend.calls_to("search_results")]
    assert indices == ["opensearch-ad-plugin-result-mine", None]


async def test_query_parameters_flow_into_query(client, fake_backend):
    params = {
        "sortField": "anomalyGrade",
        "sortDirection": "ASC",
        "startTime": "1000",
        "endTime": "2000",
        "fieldName": "data_end_time",
        "anomalyThreshold": "0.3",
        "entityList": json.dumps([{"host": "a"}]),
    }
    resp = await client.get("/api/detectors/d1/results/false", params=params)
    assert resp.json()["ok"] is True
    body = fake_backend.calls_to("search_results")[0][2]
    filters = body["query"]["bool"]["filter"]
    assert {"range": {"data_end_time": {"format": "epoch_millis", "gte": 1000, "lte": 2000}}} in filters
    assert {"range": {"anomaly_grade": {"gt": 0.3}}} in filters
    assert body["sort"] == [{"anomaly_grade": "asc"}, {"_id": "asc"}]


async def test_missing_result_index_is_empty_success(client, fake_backend):
    def _missing(kind, body, index):
        raise SearchBackendError(404, "index_not_found_exception", "no such index")

    fake_backend.on_search_results = _missing
    resp = await client.get("/api/detectors/d1/results/false")
    assert resp.status_code == 200
    assert resp.json()["response"]["totalResults"] == 0


async def test_backend_fault_is_ok_false(client, fake_backend):
    def _denied(kind, body, index):
        raise SearchBackendError(
            403,
            "security_exception",
            "no permissions for [indices:data/read/search] and User [name=bob, backend_roles=[]]",
        )

    fake_backend.on_search_results = _denied
    resp = await client.get("/api/detectors/d1/results/false")
    assert resp.status_code == 200
    assert resp.json() == {
        "ok": False,
        "error": "User bob has no permissions to [indices:data/read/search].",
    }


async def test_bad_flag_is_400(client):
    resp = await client.get("/api/detectors/d1/results/maybe")
    assert resp.status_code == 400
    assert resp.json()["ok"] is False


async def test_bad_entity_list_is_400(client):
    resp = await client.get("/api/detectors/d1/results/false", params={"entityList": "{oops"})
    assert resp.status_code == 400


async def test_list_detectors(client, fake_backend, page):
    fake_backend.on_search_jobs = lambda kind, body: page([
        {"_id": "d1", "_source": {"name": "cpu", "feature_attributes": [{"feature_id": "f1"}]}},
    ])
    resp = await client.get("/api/detectors", params={"search": "cpu", "sortField": "name"})
    body = resp.json()
    assert body["ok"] is True
    assert body["response"]["totalDetectors"] == 1
    item = body["response"]["detectorList"][0]
    assert item["curState"] == "Stopped"
    assert item["totalAnomalies"] == 0


async def test_detector_detail(client, fake_backend):
    fake_backend.on_get_job = lambda kind, job_id: {
        "_id": job_id,
        "anomaly_detector": {"name": "cpu", "feature_attributes": [{"feature_id": "f1"}]},
        "anomaly_detector_job": {"enabled": True},
    }
    resp = await client.get("/api/detectors/d1")
    body = resp.json()
    assert body["ok"] is True
    assert body["response"]["curState"] == "Running"


async def test_raw_search_passthrough(client, fake_backend, page):
    fake_backend.on_search_results = lambda kind, body, index: page([])
    query = {"size": 0, "query": {"match_all": {}}}
    resp = await client.post("/api/detectors/results/_search/opensearch-ad-plugin-result-x", json=query)
    assert resp.json()["ok"] is True
    assert fake_backend.calls_to("search_results") == [
        ("search_results", "detector", query, "opensearch-ad-plugin-result-x")
    ]


async def test_page_size_defaults_to_settings(app, client, fake_backend):
    from insight_engine.api.config import ApiSettings
    from insight_engine.api.deps.providers import get_settings

    app.dependency_overrides[get_settings] = lambda: ApiSettings(default_page_size=7)
    await client.get("/api/detectors/d1/results/false")
    await client.get("/api/detectors/d1/results/false", params={"size": 3})
    sizes = [call[2]["size"] for call in fake_backend.calls_to("search_results")]
    assert sizes == [7, 3]
