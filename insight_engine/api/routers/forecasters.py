"""Forecaster endpoints."""
from __future__ import annotations

import dataclasses
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from ...engine.job_kinds import FORECASTER
from ...engine.job_list import JobListParams
from ...engine.result_query import ResultQueryParams, parse_bool_flag
from ..deps.providers import get_search_client
from ..schemas.envelope import ApiResponse
from ..schemas.queries import job_list_params, result_query_params
from ..services.jobs_service import JobsService
from ..services.results_service import ResultsService

router = APIRouter(prefix="/api/forecasters", tags=["forecasters"])


@router.get("/_list")
async def list_forecasters(
    params: JobListParams = Depends(job_list_params),
    backend=Depends(get_search_client),
) -> ApiResponse:
    data = await JobsService(backend).list(FORECASTER, params)
    return ApiResponse.success(data)


@router.post("/results/_search")
@router.post("/results/_search/{result_index}")
async def search_forecast_results(
    body: Optional[Dict[str, Any]] = Body(None),
    result_index: Optional[str] = None,
    backend=Depends(get_search_client),
) -> ApiResponse:
    data = await ResultsService(backend).search(FORECASTER, body or {}, result_index)
    return ApiResponse.success(data)


@router.get("/{forecaster_id}")
async def get_forecaster(
    forecaster_id: str,
    backend=Depends(get_search_client),
) -> ApiResponse:
    data = await JobsService(backend).detail(FORECASTER, forecaster_id)
    return ApiResponse.success(data)


@router.get("/{forecaster_id}/results/{is_run_once}")
@router.get("/{forecaster_id}/results/{is_run_once}/{result_index}")
async def get_forecast_results(
    forecaster_id: str,
    is_run_once: str,
    result_index: Optional[str] = None,
    params: ResultQueryParams = Depends(result_query_params),
    backend=Depends(get_search_client),
) -> ApiResponse:
    """Live results by forecaster id, or run-once results by task id."""
    params = dataclasses.replace(params, is_one_shot=parse_bool_flag(is_run_once))
    data = await ResultsService(backend).get_results(
        FORECASTER, forecaster_id, params, result_index
    )
    return ApiResponse.success(data)


@router.post("/{forecaster_id}/results/_top/{is_run_once}")
async def get_top_forecast_results(
    forecaster_id: str,
    is_run_once: str,
    body: Optional[Dict[str, Any]] = Body(None),
    backend=Depends(get_search_client),
) -> ApiResponse:
    data = await ResultsService(backend).top_forecasts(
        forecaster_id, body, parse_bool_flag(is_run_once)
    )
    return ApiResponse.success(data)
