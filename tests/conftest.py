"""Shared test fixtures for the insight_engine test suite."""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

import pytest


# ── Backend fakes ────────────────────────────────────────────────────


def _empty_hits() -> Dict[str, Any]:
    return {"hits": {"total": {"value": 0}, "hits": []}}


class FakeSearchBackend:
    """In-memory ``SearchBackend`` driven by per-call handlers.

    Each ``on_*`` attribute is a plain callable receiving the same arguments
    as the backend method; it may return a payload or raise.  Every call is
    recorded in ``calls`` with a deep copy of its body.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.on_search_results = lambda kind, body, index: _empty_hits()
        self.on_search_tasks = lambda kind, body: {"aggregations": {}}
        self.on_search_jobs = lambda kind, body: _empty_hits()
        self.on_get_job = lambda kind, job_id: {"_id": job_id}
        self.on_top_forecast_results = lambda forecaster_id, body: {}

    async def search_results(self, kind, body, result_index=None):
        self.calls.append(("search_results", kind.name, copy.deepcopy(body), result_index))
        return self.on_search_results(kind, body, result_index)

    async def search_tasks(self, kind, body):
        self.calls.append(("search_tasks", kind.name, copy.deepcopy(body)))
        return self.on_search_tasks(kind, body)

    async def search_jobs(self, kind, body):
        self.calls.append(("search_jobs", kind.name, copy.deepcopy(body)))
        return self.on_search_jobs(kind, body)

    async def get_job(self, kind, job_id):
        self.calls.append(("get_job", kind.name, job_id))
        return self.on_get_job(kind, job_id)

    async def top_forecast_results(self, forecaster_id, body):
        self.calls.append(("top_forecast_results", forecaster_id, copy.deepcopy(body)))
        return self.on_top_forecast_results(forecaster_id, body)

    def calls_to(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]


def make_hit(source: Dict[str, Any], doc_id: str, sort: Optional[list] = None) -> Dict[str, Any]:
    hit = {"_id": doc_id, "_source": source}
    if sort is not None:
        hit["sort"] = sort
    return hit


def make_page(hits: List[Dict[str, Any]], total: Optional[int] = None) -> Dict[str, Any]:
    return {"hits": {"total": {"value": len(hits) if total is None else total}, "hits": hits}}


class PagedResults:
    """Serve ``documents`` through search_after pages the way the backend does.

    Documents are assumed pre-sorted; each hit's sort value is its position.
    """

    def __init__(self, documents: List[Dict[str, Any]]):
        self.documents = documents

    def __call__(self, kind, body, index):
        start = 0
        if "search_after" in body:
            start = body["search_after"][0] + 1
        size = body["size"]
        window = self.documents[start:start + size]
        hits = [make_hit(doc, f"doc-{start + i}", [start + i]) for i, doc in enumerate(window)]
        return make_page(hits, total=len(self.documents))


@pytest.fixture
def fake_backend():
    return FakeSearchBackend()


@pytest.fixture
def hit():
    return make_hit


@pytest.fixture
def page():
    return make_page


@pytest.fixture
def paged_results():
    return PagedResults


# ── API fixtures ─────────────────────────────────────────────────────


@pytest.fixture
async def app(fake_backend):
    """Create a test FastAPI app wired to a fresh fake backend."""
    import insight_engine.api.deps.providers as _prov
    from insight_engine.api.config import ApiSettings
    from insight_engine.api.main import create_app

    settings = ApiSettings(search_url="http://search.test:9200")

    # Inject into the provider module
    _prov._search_client = fake_backend

    application = create_app(settings)
    application.dependency_overrides[_prov.get_settings] = lambda: settings
    yield application

    # Cleanup
    _prov._search_client = None
    _prov.get_settings.cache_clear()


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the test app."""
    from httpx import ASGITransport, AsyncClient

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac
