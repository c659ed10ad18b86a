"""Search-after cursor pagination over the result index.

Pages are folded one by one into an immutable ``FetchState``; the loop's
only exit condition is ``last_page_was_short``.  Any backend error aborts the
whole fetch so callers never see a silently truncated result set.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..search.client import SearchBackend
from ..search.errors import PaginationError
from .job_kinds import DEFAULT_RESULT_SORT_FIELD, JobKind

logger = logging.getLogger(__name__)

TIEBREAK_FIELD = "_id"


@dataclass(frozen=True)
class FetchState:
    """Accumulator threaded through the page fold."""

    hits: Tuple[Dict[str, Any], ...] = ()
    total_hits: int = 0
    cursor: Optional[List[Any]] = None
    pages: int = 0


def last_page_was_short(count: int, page_size: int) -> bool:
    """A page with fewer rows than requested is the last one."""
    return count < page_size


def _sort_entries(sort: Any) -> List[Dict[str, Any]]:
    if isinstance(sort, list):
        return [copy.deepcopy(s) for s in sort]
    if isinstance(sort, dict):
        return [{field: direction} for field, direction in sort.items()]
    return [{str(sort): "asc"}]


def with_tiebreak_sort(
    query: Dict[str, Any],
    primary_field: str = DEFAULT_RESULT_SORT_FIELD,
    direction: str = "desc",
) -> Dict[str, Any]:
    """Copy of ``query`` with total-hit tracking and a deterministic sort.

    An empty sort becomes ``[{primary_field: direction}, {"_id": "asc"}]``;
    an existing sort without the ``_id`` tiebreaker gets it appended.
    """
    body = copy.deepcopy(query)
    body["track_total_hits"] = True
    sort = body.get("sort")
    if not sort:
        body["sort"] = [{primary_field: direction}, {TIEBREAK_FIELD: "asc"}]
        return body
    entries = _sort_entries(sort)
    if not any(TIEBREAK_FIELD in entry for entry in entries):
        entries.append({TIEBREAK_FIELD: "asc"})
    body["sort"] = entries
    return body


def _page_hits(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    return list(response.get("hits", {}).get("hits", []) or [])


def _total_hits(response: Dict[str, Any]) -> int:
    total = response.get("hits", {}).get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)
    try:
        return int(total or 0)
    except (TypeError, ValueError):
        return 0


def fold_page(state: FetchState, response: Dict[str, Any]) -> FetchState:
    """Fold one backend page into the accumulator.

    ``total_hits`` is taken from the first page only; later pages may report
    a drifting total while documents are still being written.
    """
    hits = _page_hits(response)
    total = _total_hits(response) if state.pages == 0 else state.total_hits
    cursor = hits[-1].get("sort") if hits else state.cursor
    return FetchState(
        hits=state.hits + tuple(hits),
        total_hits=total,
        cursor=cursor,
        pages=state.pages + 1,
    )


async def fetch_all(
    backend: SearchBackend,
    kind: JobKind,
    query: Dict[str, Any],
    page_size: Optional[int] = None,
    result_index: Optional[str] = None,
    primary_sort: str = DEFAULT_RESULT_SORT_FIELD,
    sort_direction: str = "desc",
) -> FetchState:
    """Run ``query`` page by page until the backend returns a short page.

    Parameters
    ----------
    backend : SearchBackend
        Result search target.
    kind : JobKind
        Selects the backend result endpoint.
    query : dict
        Body from ``build_result_query`` (optionally entity-restricted).
    page_size : int, optional
        Rows per page; defaults to ``query["size"]``.
    result_index : str, optional
        Custom result index, already prefix-validated.
    primary_sort, sort_direction : str
        Used only when ``query`` carries no sort.

    Returns
    -------
    FetchState
        All hits in backend order plus the first page's total.

    Raises
    ------
    PaginationError
        A full page ended on a hit without sort values, or the cursor did
        not advance.
    SearchBackendError
        Propagated from any page; partial results are discarded.
    """
    size = int(page_size if page_size is not None else query.get("size", 0))
    if size <= 0:
        raise ValueError(f"page_size must be positive, got {size}")

    body = with_tiebreak_sort(query, primary_sort, sort_direction)
    body["size"] = size

    state = FetchState()
    while True:
        page_body = body if state.cursor is None else {**body, "search_after": state.cursor}
        response = await backend.search_results(kind, page_body, result_index)
        count = len(_page_hits(response))
        previous_cursor = state.cursor
        state = fold_page(state, response)

        if last_page_was_short(count, size):
            logger.debug(
                "Fetched %d %s results in %d page(s), total_hits=%d",
                len(state.hits), kind.name, state.pages, state.total_hits,
            )
            return state
        if not state.cursor:
            raise PaginationError(
                f"Full page of {kind.name} results ended on a hit without sort values"
            )
        if state.cursor == previous_cursor:
            raise PaginationError(
                f"Pagination cursor did not advance after page {state.pages}"
            )
