"""Reassemble flat result documents into composite, UI-ready records.

A time bucket is written as one feature document plus, for forecasters with
a horizon, one document per forecast step.  Raw hits are classified into a
closed variant (``FeatureDocument`` / ``HorizonDocument``) right here at the
boundary; the rest of the module never inspects raw field presence.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from ..utils.rounding import normalize_number, normalize_positive
from .job_kinds import JobKind

logger = logging.getLogger(__name__)

DEFAULT_ENTITY_KEY = "default"

GroupKey = Tuple[Any, str, Any]


@dataclass(frozen=True)
class FeatureDocument:
    job_id: Any
    entity_id: Optional[str]
    entity: Optional[List[Dict[str, Any]]]
    data_start_time: Any
    data_end_time: Any
    feature_data: Tuple[Dict[str, Any], ...]
    anomaly_grade: Any = None
    confidence: Any = None


@dataclass(frozen=True)
class HorizonDocument:
    job_id: Any
    entity_id: Optional[str]
    data_end_time: Any
    horizon_index: Any
    forecast_value: Any
    forecast_lower_bound: Any
    forecast_upper_bound: Any
    forecast_data_start_time: Any
    forecast_data_end_time: Any


ResultDocument = Union[FeatureDocument, HorizonDocument]


def classify(kind: JobKind, hit: Dict[str, Any]) -> Optional[ResultDocument]:
    """Turn one raw hit into a typed document, or ``None`` if it is neither."""
    source = hit.get("_source") or {}
    job_id = source.get(kind.id_field)
    entity_id = source.get("entity_id")
    if isinstance(source.get("feature_data"), list):
        return FeatureDocument(
            job_id=job_id,
            entity_id=entity_id,
            entity=source.get("entity"),
            data_start_time=source.get("data_start_time"),
            data_end_time=source.get("data_end_time"),
            feature_data=tuple(source["feature_data"]),
            anomaly_grade=source.get("anomaly_grade"),
            confidence=source.get("confidence"),
        )
    if source.get("horizon_index") is not None:
        return HorizonDocument(
            job_id=job_id,
            entity_id=entity_id,
            data_end_time=source.get("data_end_time"),
            horizon_index=source["horizon_index"],
            forecast_value=source.get("forecast_value"),
            forecast_lower_bound=source.get("forecast_lower_bound"),
            forecast_upper_bound=source.get("forecast_upper_bound"),
            forecast_data_start_time=source.get("forecast_data_start_time"),
            forecast_data_end_time=source.get("forecast_data_end_time"),
        )
    logger.debug("Skipping result %s: neither feature nor horizon document", hit.get("_id"))
    return None


def group_key(doc: ResultDocument) -> GroupKey:
    return (doc.job_id, doc.entity_id or DEFAULT_ENTITY_KEY, doc.data_end_time)


def feature_values(doc: FeatureDocument) -> Dict[str, Dict[str, Any]]:
    """Map feature id to its display value for one bucket."""
    features: Dict[str, Dict[str, Any]] = {}
    for item in doc.feature_data:
        features[item.get("feature_id")] = {
            "startTime": doc.data_start_time,
            "endTime": doc.data_end_time,
            "plotTime": doc.data_end_time,
            "data": normalize_number(item.get("data")),
            "name": item.get("feature_name"),
        }
    return features


def _horizon_sort_key(doc: HorizonDocument) -> float:
    try:
        return float(doc.horizon_index)
    except (TypeError, ValueError):
        return float("inf")


def _composite(kind: JobKind, feature: FeatureDocument, horizons: List[HorizonDocument]) -> Dict[str, Any]:
    ordered = sorted(horizons, key=_horizon_sort_key)
    record: Dict[str, Any] = {
        "startTime": feature.data_start_time,
        "endTime": feature.data_end_time,
        "plotTime": feature.data_end_time,
        "forecastValue": [normalize_number(h.forecast_value) for h in ordered],
        "forecastLowerBound": [normalize_number(h.forecast_lower_bound) for h in ordered],
        "forecastUpperBound": [normalize_number(h.forecast_upper_bound) for h in ordered],
        "forecastStartTime": [h.forecast_data_start_time for h in ordered],
        "forecastEndTime": [h.forecast_data_end_time for h in ordered],
    }
    if not kind.is_forecaster:
        record["anomalyGrade"] = normalize_positive(feature.anomaly_grade)
        record["confidence"] = normalize_positive(feature.confidence)
    if feature.entity is not None:
        record["entity"] = feature.entity
        record["entityId"] = feature.entity_id
    record["features"] = feature_values(feature)
    return record


def _plot_time_key(record: Dict[str, Any]) -> float:
    value = record.get("plotTime")
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def group_results(kind: JobKind, hits: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Group raw hits into composite records sorted by plot time.

    Buckets without a feature document are dropped; buckets without horizon
    documents keep empty forecast arrays.
    """
    features: Dict[GroupKey, FeatureDocument] = {}
    horizons: Dict[GroupKey, List[HorizonDocument]] = {}
    order: Dict[GroupKey, None] = {}

    for hit in hits:
        doc = classify(kind, hit)
        if doc is None:
            continue
        key = group_key(doc)
        order.setdefault(key, None)
        if isinstance(doc, FeatureDocument):
            features[key] = doc
        else:
            horizons.setdefault(key, []).append(doc)

    records = []
    orphans = 0
    for key in order:
        feature = features.get(key)
        if feature is None:
            orphans += 1
            continue
        records.append(_composite(kind, feature, horizons.get(key, [])))
    if orphans:
        logger.debug("Dropped %d %s bucket(s) without feature data", orphans, kind.name)

    records.sort(key=_plot_time_key)
    return records


def feature_results(records: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Per-feature time series across composite records."""
    series: Dict[str, List[Dict[str, Any]]] = {}
    for record in records:
        for feature_id, feature in record["features"].items():
            series.setdefault(feature_id, []).append({
                "startTime": feature["startTime"],
                "endTime": feature["endTime"],
                "plotTime": feature["plotTime"],
                "data": feature["data"],
            })
    return series
