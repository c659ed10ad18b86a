"""Result retrieval: query, optional top-N narrowing, full fetch, grouping."""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Optional

from ...engine.grouping import feature_results, group_results
from ...engine.job_kinds import JobKind
from ...engine.pagination import fetch_all
from ...engine.result_query import (
    ResultQueryParams,
    build_result_query,
    normalize_sort_direction,
    resolve_result_index,
)
from ...engine.top_entities import restrict_to_entities, select_top_entities
from ...search.client import SearchBackend
from ...search.errors import SearchBackendError, is_benign_missing_index

logger = logging.getLogger(__name__)

EMPTY_SEARCH_RESPONSE: Dict[str, Any] = {"hits": {"total": {"value": 0}, "hits": []}}

# Top-forecast filter modes and the body keys each one forwards.
BUILD_IN_QUERY = "BUILD_IN_QUERY"
CUSTOM_QUERY = "CUSTOM_QUERY"
DISTANCE_TO_THRESHOLD_VALUE = "DISTANCE_TO_THRESHOLD_VALUE"


def _empty_results(kind: JobKind) -> Dict[str, Any]:
    response: Dict[str, Any] = {"totalResults": 0, "results": []}
    if not kind.is_forecaster:
        response["featureResults"] = {}
    return response


def top_forecasts_body(payload: Optional[Dict[str, Any]], is_run_once: bool) -> Dict[str, Any]:
    """Keep only the top-forecast options that apply to the chosen filter mode."""
    payload = payload or {}
    body: Dict[str, Any] = {}
    if payload.get("split_by"):
        body["split_by"] = payload["split_by"]

    filter_by = payload.get("filter_by")
    if filter_by:
        body["filter_by"] = filter_by
        build_in_query = payload.get("build_in_query")
        if filter_by == BUILD_IN_QUERY and build_in_query:
            body["build_in_query"] = build_in_query
            if build_in_query == DISTANCE_TO_THRESHOLD_VALUE:
                body["threshold"] = payload.get("threshold", 0)
                body["relation_to_threshold"] = payload.get("relation_to_threshold", "")
        elif filter_by == CUSTOM_QUERY:
            if payload.get("filter_query"):
                body["filter_query"] = payload["filter_query"]
            if payload.get("subaggregations"):
                body["subaggregations"] = payload["subaggregations"]

    if payload.get("forecast_from"):
        body["forecast_from"] = payload["forecast_from"]
    if is_run_once:
        body["run_once"] = True
    return body


class ResultsService:
    """Composite result records for one job, plus raw search passthrough."""

    def __init__(self, backend: SearchBackend) -> None:
        self.backend = backend

    async def get_results(
        self,
        kind: JobKind,
        job_id: str,
        params: ResultQueryParams,
        result_index: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Fetch every matching result and reshape it into composite records.

        Returns ``{totalResults, results}``; detectors also get
        ``featureResults``.  A missing result index is an empty answer.
        """
        index = resolve_result_index(kind, result_index)
        query = build_result_query(kind, job_id, params)
        direction = normalize_sort_direction(params.sort_direction)

        try:
            if params.max_entities > 0:
                entity_ids = await select_top_entities(
                    self.backend, kind, query, params.max_entities, index
                )
                if not entity_ids:
                    return _empty_results(kind)
                query = restrict_to_entities(query, entity_ids)
            state = await fetch_all(
                self.backend,
                kind,
                query,
                page_size=params.size,
                result_index=index,
                sort_direction=direction,
            )
        except SearchBackendError as err:
            if is_benign_missing_index(err):
                logger.info("Result index for %s %s not created yet", kind.name, job_id)
                return _empty_results(kind)
            raise

        records = group_results(kind, list(state.hits))
        logger.info(
            "Grouped %d %s results into %d records",
            len(state.hits), kind.name, len(records),
            extra={"context": {"job_id": job_id, "pages": state.pages}},
        )
        response: Dict[str, Any] = {"totalResults": state.total_hits, "results": records}
        if not kind.is_forecaster:
            response["featureResults"] = feature_results(records)
        return response

    async def search(
        self,
        kind: JobKind,
        body: Dict[str, Any],
        result_index: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Run a caller-built result query unchanged."""
        try:
            return await self.backend.search_results(
                kind, body, resolve_result_index(kind, result_index)
            )
        except SearchBackendError as err:
            if is_benign_missing_index(err):
                return copy.deepcopy(EMPTY_SEARCH_RESPONSE)
            raise

    async def top_forecasts(
        self,
        forecaster_id: str,
        payload: Optional[Dict[str, Any]],
        is_run_once: bool,
    ) -> Dict[str, Any]:
        body = top_forecasts_body(payload, is_run_once)
        logger.debug("Top forecasts for forecaster %s: %s", forecaster_id, body)
        return await self.backend.top_forecast_results(forecaster_id, body)
