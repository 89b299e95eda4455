"""Fleet-level diesel reporting over evaluated records."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from src.config.constants import PROBE_DISCREPANCY_THRESHOLD, PROBE_STATUSES
from src.diesel.records import EvaluatedRecord

logger = logging.getLogger(__name__)


@dataclass
class FleetSummary:
    total_records: int = 0
    total_litres: float = 0.0
    total_cost: float = 0.0
    total_distance: float = 0.0
    total_reefer_hours: float = 0.0
    records_requiring_debrief: int = 0
    poor_performance_records: int = 0
    excellent_performance_records: int = 0
    linked_to_trips: int = 0
    records_with_probe: int = 0
    records_needing_probe_verification: int = 0
    records_with_verified_probe: int = 0
    reefer_records: int = 0
    records_by_currency: Dict[str, int] = field(default_factory=dict)
    cost_by_currency: Dict[str, float] = field(default_factory=dict)
    average_km_per_litre: float = 0.0
    average_cost_per_km: float = 0.0
    average_litres_per_hour: float = 0.0


def records_frame(evaluated: Iterable[EvaluatedRecord]) -> pd.DataFrame:
    """One row per evaluated record, flattened via EvaluatedRecord.to_dict."""
    rows = [e.to_dict() for e in evaluated]
    return pd.DataFrame(rows)


def fleet_summary(evaluated: Iterable[EvaluatedRecord]) -> FleetSummary:
    """Totals, counts and averages across a set of evaluated records.

    Distance is summed over standard units and hours over reefer units; both
    averages divide by the litres of every record. Averages are 0 when their
    denominator is 0.
    """
    df = records_frame(evaluated)
    summary = FleetSummary()
    if df.empty:
        return summary

    litres = df["litres_filled"].astype(float).fillna(0.0)
    cost = df["total_cost"].astype(float).fillna(0.0)
    reefer = df["is_reefer"].astype(bool)
    distance = df["distance"].astype(float).fillna(0.0)
    hours = df["hours_operated"].astype(float).fillna(0.0)

    summary.total_records = len(df)
    summary.total_litres = float(litres.sum())
    summary.total_cost = float(cost.sum())
    summary.total_distance = float(distance[~reefer].sum())
    summary.total_reefer_hours = float(hours[reefer].sum())
    summary.records_requiring_debrief = int(df["requires_debrief"].sum())
    summary.poor_performance_records = int((df["performance"] == "poor").sum())
    summary.excellent_performance_records = int((df["performance"] == "excellent").sum())
    summary.linked_to_trips = int(df["trip_id"].notna().sum())
    summary.records_with_probe = int(df["has_probe"].sum())
    summary.records_needing_probe_verification = int(df["needs_probe_verification"].sum())
    summary.records_with_verified_probe = int(df["probe_verified"].sum())
    summary.reefer_records = int(reefer.sum())

    by_currency = df.assign(total_cost=cost).groupby("currency")["total_cost"]
    summary.records_by_currency = {k: int(v) for k, v in by_currency.count().items()}
    summary.cost_by_currency = {k: float(v) for k, v in by_currency.sum().items()}

    if summary.total_litres > 0 and summary.total_distance > 0:
        summary.average_km_per_litre = summary.total_distance / summary.total_litres
    if summary.total_distance > 0:
        summary.average_cost_per_km = summary.total_cost / summary.total_distance
    if summary.total_reefer_hours > 0:
        summary.average_litres_per_hour = summary.total_litres / summary.total_reefer_hours

    return summary


def per_fleet_summary(evaluated: Iterable[EvaluatedRecord]) -> pd.DataFrame:
    """Per-fleet aggregates indexed by fleet_id."""
    df = records_frame(evaluated)
    if df.empty:
        return pd.DataFrame(
            columns=["records", "litres", "cost", "distance", "mean_variance",
                     "debriefs", "km_per_litre"]
        )

    for col in ("distance", "litres_filled", "total_cost"):
        df[col] = df[col].astype(float)
    grouped = df.groupby("fleet_id").agg(
        records=("fleet_id", "size"),
        litres=("litres_filled", "sum"),
        cost=("total_cost", "sum"),
        distance=("distance", "sum"),
        mean_variance=("variance_percent", "mean"),
        debriefs=("requires_debrief", "sum"),
    )
    grouped["km_per_litre"] = np.where(
        (grouped["litres"] > 0) & (grouped["distance"] > 0),
        grouped["distance"] / grouped["litres"].replace(0, np.nan),
        0.0,
    )
    return grouped.sort_index()


def _matches_probe_status(e: EvaluatedRecord, status: str, threshold: float) -> bool:
    if status == "has-probe":
        return e.has_probe
    if status == "needs-verification":
        return e.needs_probe_verification
    if status == "verified":
        return e.has_probe and e.record.probe_verified
    if status == "large-discrepancy":
        return bool(e.probe_discrepancy) and abs(e.probe_discrepancy) > threshold
    return e.is_reefer  # "reefer-units"


def filter_records(
    evaluated: Iterable[EvaluatedRecord],
    fleet: Optional[str] = None,
    driver: Optional[str] = None,
    date: Optional[str] = None,
    currency: Optional[str] = None,
    probe_status: Optional[str] = None,
    threshold: float = PROBE_DISCREPANCY_THRESHOLD,
) -> List[EvaluatedRecord]:
    """Select records matching every filter given; None means no filter."""
    if probe_status and probe_status not in PROBE_STATUSES:
        raise ValueError(
            f"Unknown probe status {probe_status!r}, expected one of {PROBE_STATUSES}"
        )

    selected = []
    for e in evaluated:
        r = e.record
        if fleet and r.fleet_id != fleet:
            continue
        if driver and r.driver_name != driver:
            continue
        if date and r.date != date:
            continue
        if currency and r.currency != currency:
            continue
        if probe_status and not _matches_probe_status(e, probe_status, threshold):
            continue
        selected.append(e)
    return selected
