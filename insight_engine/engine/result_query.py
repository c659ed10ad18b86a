"""Build the structured search body for one job's result documents."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from ..config import DEFAULT_RESULT_PAGE_SIZE
from .job_kinds import DEFAULT_RESULT_SORT_FIELD, JobKind

logger = logging.getLogger(__name__)

ENTITY_FIELD = "entity"
ENTITY_NAME_PATH_FIELD = "entity.name"
ENTITY_VALUE_PATH_FIELD = "entity.value"
TASK_ID_FIELD = "task_id"
EXECUTION_END_TIME_FIELD = "execution_end_time"
ANOMALY_GRADE_FIELD = "anomaly_grade"

SORT_DIRECTIONS = ("asc", "desc")

Bound = Optional[Union[int, float, str]]
EntityList = Optional[Union[str, List[Dict[str, Any]]]]


class InvalidRequestError(ValueError):
    """A request parameter cannot be interpreted."""


@dataclass(frozen=True)
class ResultQueryParams:
    """Caller-facing knobs for a result fetch, already split from the HTTP layer."""

    is_one_shot: bool = False
    size: int = DEFAULT_RESULT_PAGE_SIZE
    from_: int = 0
    sort_field: str = DEFAULT_RESULT_SORT_FIELD
    sort_direction: str = "DESC"
    start_time: Bound = None
    end_time: Bound = None
    field_name: str = ""
    anomaly_threshold: Optional[float] = None
    entity_list: EntityList = None
    max_entities: int = 0
    dawn_epoch: int = 0


def parse_bool_flag(value: Union[str, bool]) -> bool:
    """Parse the JSON-encoded boolean path segment (``true`` / ``false``)."""
    if isinstance(value, bool):
        return value
    try:
        parsed = json.loads(str(value).strip().lower())
    except json.JSONDecodeError as exc:
        raise InvalidRequestError(f"Expected 'true' or 'false', got {value!r}") from exc
    if not isinstance(parsed, bool):
        raise InvalidRequestError(f"Expected 'true' or 'false', got {value!r}")
    return parsed


def resolve_result_index(kind: JobKind, result_index: Optional[str]) -> Optional[str]:
    """Return ``result_index`` when it carries the kind's reserved prefix.

    Anything else (including ``None`` and the empty string) means "use the
    default result index".
    """
    if result_index and result_index.startswith(kind.custom_result_index_prefix):
        return result_index
    if result_index:
        logger.debug(
            "Ignoring result index %r without prefix %r",
            result_index,
            kind.custom_result_index_prefix,
        )
    return None


def normalize_sort_direction(direction: Optional[str]) -> str:
    value = (direction or "desc").strip().lower()
    if value not in SORT_DIRECTIONS:
        raise InvalidRequestError(f"sortDirection must be ASC or DESC, got {direction!r}")
    return value


def sort_clause(kind: JobKind, sort_field: Optional[str], direction: Optional[str]) -> Optional[Dict[str, str]]:
    """Sort clause for an allow-listed field, else ``None``.

    Unknown sort fields are ignored rather than rejected.
    """
    field = kind.sortable_result_fields.get(sort_field or "")
    if field is None:
        return None
    return {field: normalize_sort_direction(direction)}


def _parse_bound(value: Bound) -> Optional[int]:
    # 0 and "" both mean "no bound".
    if value is None or value == "" or value == 0:
        return None
    if isinstance(value, bool):
        raise ValueError(f"boolean is not an epoch bound: {value!r}")
    if isinstance(value, str):
        parsed = int(value.strip())
    else:
        parsed = int(value)
    return parsed or None


def date_range_filter(field_name: Optional[str], start_time: Bound, end_time: Bound) -> Optional[Dict[str, Any]]:
    """Epoch-millis range filter on ``field_name``.

    Each bound is optional on its own.  An unparsable bound drops the whole
    filter with a warning instead of failing the request.
    """
    if not field_name:
        return None
    try:
        gte = _parse_bound(start_time)
        lte = _parse_bound(end_time)
    except (TypeError, ValueError, OverflowError):
        logger.warning(
            "Wrong date range filter on %s (start=%r, end=%r); filter omitted",
            field_name,
            start_time,
            end_time,
        )
        return None
    if gte is None and lte is None:
        return None
    bounds: Dict[str, Any] = {"format": "epoch_millis"}
    if gte is not None:
        bounds["gte"] = gte
    if lte is not None:
        bounds["lte"] = lte
    return {"range": {field_name: bounds}}


def parse_entity_list(entity_list: EntityList) -> List[Dict[str, Any]]:
    """Decode the ``entityList`` parameter into a list of name-to-value maps."""
    if entity_list is None or entity_list == "":
        return []
    if isinstance(entity_list, str):
        try:
            decoded = json.loads(entity_list)
        except json.JSONDecodeError as exc:
            raise InvalidRequestError(f"entityList is not valid JSON: {exc.msg}") from exc
    else:
        decoded = entity_list
    if isinstance(decoded, dict):
        decoded = [decoded] if decoded else []
    if not isinstance(decoded, list) or not all(isinstance(e, dict) for e in decoded):
        raise InvalidRequestError("entityList must be a JSON array of name/value objects")
    return [e for e in decoded if e]


def _entity_clause(name: str, value: Any) -> Dict[str, Any]:
    return {
        "nested": {
            "path": ENTITY_FIELD,
            "query": {
                "bool": {
                    "must": [
                        {"term": {ENTITY_NAME_PATH_FIELD: name}},
                        {"term": {ENTITY_VALUE_PATH_FIELD: value}},
                    ]
                }
            },
            "ignore_unmapped": False,
            "score_mode": "avg",
        }
    }


def entity_list_query(entities: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """OR of entities, each an AND of its name/value pairs."""
    if not entities:
        return None
    should = [
        {"bool": {"must": [_entity_clause(name, value) for name, value in entity.items()]}}
        for entity in entities
    ]
    return {"bool": {"should": should, "minimum_should_match": 1}}


def build_result_query(kind: JobKind, job_id: str, params: ResultQueryParams) -> Dict[str, Any]:
    """Build the search body for ``job_id``'s results.

    Parameters
    ----------
    kind : JobKind
        Detector or forecaster.
    job_id : str
        Job id for live results, or the one-shot task id when
        ``params.is_one_shot`` is set.
    params : ResultQueryParams
        Filters, sort and page size.

    Returns
    -------
    dict
        ``{"size", "query", ["sort"]}``.  The filter list lives at
        ``query.bool.filter`` so later stages can append to it.

    Raises
    ------
    InvalidRequestError
        ``entity_list`` or ``sort_direction`` cannot be interpreted.
    """
    id_field = TASK_ID_FIELD if params.is_one_shot else kind.id_field
    filters: List[Dict[str, Any]] = [{"term": {id_field: job_id}}]
    bool_query: Dict[str, Any] = {"filter": filters}

    # Live views must never show rows written by a one-shot task.
    if not params.is_one_shot:
        bool_query["must_not"] = {"exists": {"field": TASK_ID_FIELD}}

    date_range = date_range_filter(params.field_name, params.start_time, params.end_time)
    if date_range is not None:
        filters.append(date_range)

    if params.dawn_epoch and params.dawn_epoch > 0:
        filters.append({"range": {EXECUTION_END_TIME_FIELD: {"gte": params.dawn_epoch}}})

    if params.anomaly_threshold is not None:
        if kind.supports_anomaly_threshold:
            filters.append({"range": {ANOMALY_GRADE_FIELD: {"gt": params.anomaly_threshold}}})
        else:
            logger.debug("anomalyThreshold ignored for %s results", kind.name)

    entity_filter = entity_list_query(parse_entity_list(params.entity_list))
    if entity_filter is not None:
        filters.append(entity_filter)

    body: Dict[str, Any] = {"size": params.size, "query": {"bool": bool_query}}
    sort = sort_clause(kind, params.sort_field, params.sort_direction)
    if sort is not None:
        body["sort"] = sort
    return body
