"""Query-string parsing shared by the detector and forecaster routers.

Parameter names on the wire are camelCase and must stay that way; the
Python names are aliased.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Query

from ...engine.job_kinds import DEFAULT_RESULT_SORT_FIELD
from ...engine.job_list import JobListParams
from ...engine.result_query import ResultQueryParams
from ..config import ApiSettings
from ..deps.providers import get_settings


def result_query_params(
    from_: int = Query(0, alias="from", ge=0),
    size: Optional[int] = Query(None, ge=1),
    sort_direction: str = Query("DESC", alias="sortDirection"),
    sort_field: str = Query(DEFAULT_RESULT_SORT_FIELD, alias="sortField"),
    start_time: Optional[str] = Query(None, alias="startTime"),
    end_time: Optional[str] = Query(None, alias="endTime"),
    field_name: str = Query("", alias="fieldName"),
    anomaly_threshold: Optional[float] = Query(None, alias="anomalyThreshold"),
    entity_list: Optional[str] = Query(None, alias="entityList"),
    max_entities: int = Query(0, alias="maxEntities", ge=0),
    dawn_epoch: int = Query(0, alias="dawnEpoch", ge=0),
    settings: ApiSettings = Depends(get_settings),
) -> ResultQueryParams:
    # The live/one-shot flag is a path segment; routers fill it in.
    return ResultQueryParams(
        size=size if size is not None else settings.default_page_size,
        from_=from_,
        sort_field=sort_field,
        sort_direction=sort_direction,
        start_time=start_time,
        end_time=end_time,
        field_name=field_name,
        anomaly_threshold=anomaly_threshold,
        entity_list=entity_list,
        max_entities=max_entities,
        dawn_epoch=dawn_epoch,
    )


def job_list_params(
    from_: int = Query(0, alias="from", ge=0),
    size: int = Query(20, ge=1),
    search: str = "",
    indices: str = "",
    sort_direction: str = Query("DESC", alias="sortDirection"),
    sort_field: str = Query("name", alias="sortField"),
) -> JobListParams:
    return JobListParams(
        from_=from_,
        size=size,
        search=search,
        indices=indices,
        sort_direction=sort_direction,
        sort_field=sort_field,
    )
