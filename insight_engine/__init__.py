"""
Insight engine: job-state resolution and result aggregation for anomaly
detectors and forecasters running on an OpenSearch-compatible backend.

Subpackages:
    - engine: task-state resolution, query building, pagination, grouping
    - search: async backend client and backend error taxonomy
    - api: FastAPI application exposing the engine
    - utils: logging and numeric display helpers
"""

__version__ = "1.0.0"
