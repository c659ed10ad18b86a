"""Pre-select the most active entities before a detailed result fetch."""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

from ..search.client import SearchBackend
from .job_kinds import JobKind

logger = logging.getLogger(__name__)

ENTITY_ID_FIELD = "entity_id"
TOP_ENTITIES_AGG = "top_entities"


def top_entities_query(query: Dict[str, Any], max_entities: int) -> Dict[str, Any]:
    """Size-0 search that buckets ``query``'s matches by ``entity_id``."""
    return {
        "size": 0,
        "query": copy.deepcopy(query["query"]),
        "aggs": {
            TOP_ENTITIES_AGG: {
                "terms": {
                    "field": ENTITY_ID_FIELD,
                    "size": max_entities,
                    "order": {"_count": "desc"},
                }
            }
        },
    }


async def select_top_entities(
    backend: SearchBackend,
    kind: JobKind,
    query: Dict[str, Any],
    max_entities: int,
    result_index: Optional[str] = None,
) -> List[str]:
    """Return up to ``max_entities`` entity ids ordered by descending activity.

    An empty list means no entity matched; callers must answer with an empty
    result set rather than fetch unfiltered.
    """
    response = await backend.search_results(
        kind, top_entities_query(query, max_entities), result_index
    )
    buckets = (
        response.get("aggregations", {}).get(TOP_ENTITIES_AGG, {}).get("buckets", [])
    )
    entity_ids = [str(b["key"]) for b in buckets if "key" in b]
    logger.debug("Top %d entities for %s: %s", max_entities, kind.name, entity_ids)
    return entity_ids


def restrict_to_entities(query: Dict[str, Any], entity_ids: List[str]) -> Dict[str, Any]:
    """Copy of ``query`` whose filter list also requires one of ``entity_ids``."""
    restricted = copy.deepcopy(query)
    restricted["query"]["bool"].setdefault("filter", []).append(
        {"terms": {ENTITY_ID_FIELD: list(entity_ids)}}
    )
    return restricted
