"""
Central configuration for the insight engine.

Flat-constant interface shared by the engine and the API layer.  Values that
depend on the deployment (backend URL, credentials, port) live in
``api/config.py`` as environment-driven settings; everything here describes
the backend's data layout and the engine's fixed policies.

Config Status Legend
====================
Each constant is annotated with one of the following statuses:

  ACTIVE      Imported and used by running code.  Changing the value
              affects live behaviour.
  PLACEHOLDER Defined for future use.  Safe to change without affecting
              current behaviour.

Search for ``# STATUS:`` to locate all annotations.
"""
from typing import List

# ── Backend API paths ──────────────────────────────────────────────────
AD_API_ROUTE_PREFIX = "/_plugins/_anomaly_detection"         # STATUS: ACTIVE (DETECTOR_API_BASE)
FORECAST_API_ROUTE_PREFIX = "/_plugins/_forecast"             # STATUS: ACTIVE (FORECASTER_API_BASE)
DETECTOR_API_BASE = f"{AD_API_ROUTE_PREFIX}/detectors"        # STATUS: ACTIVE (engine/job_kinds.py)
FORECASTER_API_BASE = f"{FORECAST_API_ROUTE_PREFIX}/forecasters"  # STATUS: ACTIVE (engine/job_kinds.py)

# ── Result indices ─────────────────────────────────────────────────────
# A caller-supplied result index is honoured only when it carries the
# reserved prefix for its job kind; anything else falls back to the default.
CUSTOM_AD_RESULT_INDEX_PREFIX = "opensearch-ad-plugin-result-"        # STATUS: ACTIVE (engine/result_query.py)
CUSTOM_FORECAST_RESULT_INDEX_PREFIX = "opensearch-forecast-result-"   # STATUS: ACTIVE (engine/result_query.py)

# ── Task records ───────────────────────────────────────────────────────
REALTIME_TASK_TYPES: List[str] = [                   # STATUS: ACTIVE (engine/job_kinds.py)
    "REALTIME_HC_DETECTOR",
    "REALTIME_SINGLE_ENTITY",
]
HISTORICAL_TASK_TYPES: List[str] = [                 # STATUS: ACTIVE (engine/job_kinds.py)
    "HISTORICAL_SINGLE_ENTITY",
    "HISTORICAL_HC_DETECTOR",
    "HISTORICAL",
]
FORECAST_REALTIME_TASK_TYPES: List[str] = [          # STATUS: ACTIVE (engine/job_kinds.py)
    "REALTIME_FORECAST_HC_FORECASTER",
    "REALTIME_FORECAST_SINGLE_STREAM",
]
FORECAST_RUN_ONCE_TASK_TYPES: List[str] = [          # STATUS: ACTIVE (engine/job_kinds.py)
    "RUN_ONCE_FORECAST_HC_FORECASTER",
    "RUN_ONCE_FORECAST_SINGLE_STREAM",
]

STACK_TRACE_PATTERN = ".java:"                       # STATUS: ACTIVE (engine/task_state.py) marks unreadable errors
OPENSEARCH_EXCEPTION_PREFIX = "org.opensearch.OpenSearchException: "  # STATUS: ACTIVE (engine/task_state.py)
STOPPED_DETECTOR_MARKER = "Stopped detector"         # STATUS: ACTIVE (engine/task_state.py) end-run exception text
UNKNOWN_PREDICTION_MARKER = "We might have bugs"     # STATUS: ACTIVE (engine/task_state.py) end-run exception text

# ── Query limits ───────────────────────────────────────────────────────
MAX_DETECTORS = 1000                                 # STATUS: ACTIVE (engine/job_kinds.py) task aggregation bucket cap
MAX_FORECASTERS = 1000                               # STATUS: ACTIVE (engine/job_kinds.py) task aggregation bucket cap
DEFAULT_RESULT_PAGE_SIZE = 20                        # STATUS: ACTIVE (api/config.py)
ACTIVITY_WINDOW_START = "now-24h"                    # STATUS: ACTIVE (engine/job_list.py) list-view activity window
ACTIVITY_WINDOW_END = "now"                          # STATUS: ACTIVE (engine/job_list.py)

# ── Display ────────────────────────────────────────────────────────────
# Values below this threshold are shown in scientific notation rather than
# collapsing to 0.00.
SHOW_DECIMAL_NUMBER_THRESHOLD = 0.01                 # STATUS: ACTIVE (utils/rounding.py)
DISPLAY_DECIMALS = 2                                 # STATUS: ACTIVE (utils/rounding.py)

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL = "INFO"                                   # STATUS: ACTIVE (api/config.py) "DEBUG", "INFO", "WARNING", "ERROR"
LOG_FORMAT = "structured"                            # STATUS: ACTIVE (api/main.py) "structured" or "json"


# ── Config Validation ──────────────────────────────────────────────────

def validate_config() -> list:
    """Check config for common misconfigurations.

    Returns a list of dicts: [{"level": "WARNING"|"ERROR", "message": str}].
    Called on server startup.
    """
    issues = []

    # 1. Custom index prefixes must be distinct and dash-terminated so that
    #    a prefix check cannot match an unrelated index family.
    for name, prefix in (
        ("CUSTOM_AD_RESULT_INDEX_PREFIX", CUSTOM_AD_RESULT_INDEX_PREFIX),
        ("CUSTOM_FORECAST_RESULT_INDEX_PREFIX", CUSTOM_FORECAST_RESULT_INDEX_PREFIX),
    ):
        if not prefix.endswith("-"):
            issues.append({
                "level": "WARNING",
                "message": f"{name} ({prefix!r}) does not end with '-'; unrelated indices may pass the prefix check.",
            })
    if CUSTOM_AD_RESULT_INDEX_PREFIX == CUSTOM_FORECAST_RESULT_INDEX_PREFIX:
        issues.append({
            "level": "ERROR",
            "message": "Detector and forecaster custom result index prefixes are identical.",
        })

    # 2. Real-time and one-shot task types must not overlap, otherwise the
    #    same task would be counted as both.
    for kind, realtime, one_shot in (
        ("detector", REALTIME_TASK_TYPES, HISTORICAL_TASK_TYPES),
        ("forecaster", FORECAST_REALTIME_TASK_TYPES, FORECAST_RUN_ONCE_TASK_TYPES),
    ):
        overlap = sorted(set(realtime) & set(one_shot))
        if overlap:
            issues.append({
                "level": "ERROR",
                "message": f"{kind} task types appear in both real-time and one-shot lists: {overlap}",
            })

    # 3. Limits
    if DEFAULT_RESULT_PAGE_SIZE <= 0:
        issues.append({
            "level": "ERROR",
            "message": f"DEFAULT_RESULT_PAGE_SIZE must be positive, got {DEFAULT_RESULT_PAGE_SIZE}.",
        })
    for name, value in (("MAX_DETECTORS", MAX_DETECTORS), ("MAX_FORECASTERS", MAX_FORECASTERS)):
        if value <= 0:
            issues.append({
                "level": "ERROR",
                "message": f"{name} must be positive, got {value}.",
            })

    # 4. Logging
    if LOG_FORMAT not in ("structured", "json"):
        issues.append({
            "level": "WARNING",
            "message": f"LOG_FORMAT={LOG_FORMAT!r} is not recognised; falling back to 'structured'.",
        })

    return issues
