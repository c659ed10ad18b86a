"""
Job-state resolution and result aggregation.

Pure transformations (task state, query building, grouping) sit beside the
few coroutines that talk to a ``SearchBackend`` (top-N selection, paginated
fetch, list and detail views).
"""
from .job_kinds import DETECTOR, FORECASTER, JobKind
from .states import DetectorState, ForecasterState

__all__ = ["DETECTOR", "FORECASTER", "JobKind", "DetectorState", "ForecasterState"]
