"""Anomaly detector endpoints."""
from __future__ import annotations

import dataclasses
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from ...engine.job_kinds import DETECTOR
from ...engine.job_list import JobListParams
from ...engine.result_query import ResultQueryParams, parse_bool_flag
from ..deps.providers import get_search_client
from ..schemas.envelope import ApiResponse
from ..schemas.queries import job_list_params, result_query_params
from ..services.jobs_service import JobsService
from ..services.results_service import ResultsService

router = APIRouter(prefix="/api/detectors", tags=["detectors"])


@router.get("")
async def list_detectors(
    params: JobListParams = Depends(job_list_params),
    backend=Depends(get_search_client),
) -> ApiResponse:
    data = await JobsService(backend).list(DETECTOR, params)
    return ApiResponse.success(data)


@router.post("/results/_search")
@router.post("/results/_search/{result_index}")
async def search_detector_results(
    body: Optional[Dict[str, Any]] = Body(None),
    result_index: Optional[str] = None,
    backend=Depends(get_search_client),
) -> ApiResponse:
    data = await ResultsService(backend).search(DETECTOR, body or {}, result_index)
    return ApiResponse.success(data)


@router.get("/{detector_id}")
async def get_detector(
    detector_id: str,
    backend=Depends(get_search_client),
) -> ApiResponse:
    data = await JobsService(backend).detail(DETECTOR, detector_id)
    return ApiResponse.success(data)


@router.get("/{detector_id}/results/{is_historical}")
@router.get("/{detector_id}/results/{is_historical}/{result_index}")
async def get_anomaly_results(
    detector_id: str,
    is_historical: str,
    result_index: Optional[str] = None,
    params: ResultQueryParams = Depends(result_query_params),
    backend=Depends(get_search_client),
) -> ApiResponse:
    """Live results by detector id, or historical results by task id."""
    params = dataclasses.replace(params, is_one_shot=parse_bool_flag(is_historical))
    data = await ResultsService(backend).get_results(
        DETECTOR, detector_id, params, result_index
    )
    return ApiResponse.success(data)
