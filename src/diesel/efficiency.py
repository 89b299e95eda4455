"""Diesel efficiency evaluation: rate, variance against norm, debrief and probe flags.

Standard units are judged on km per litre (higher is better). Reefer units
are judged on litres per hour (lower is better), so their variance sign is
inverted. Reefer records are never reclassified away from "normal" and never
require a debrief; that mirrors the fleet's existing behaviour and is pending
product clarification.
"""

import logging
from typing import Iterable, List, Optional

from src.config.constants import (
    DEFAULT_EXPECTED_KM_PER_LITRE,
    DEFAULT_EXPECTED_LITRES_PER_HOUR,
    DEFAULT_TOLERANCE_PERCENT,
)
from src.config.schema import EfficiencyConfig, FleetNorm, default_efficiency_config
from src.diesel.records import EvaluatedRecord, FuelRecord, as_number

logger = logging.getLogger(__name__)


def _positive(value) -> Optional[float]:
    number = as_number(value)
    return number if number is not None and number > 0 else None


def _ratio(numerator, denominator) -> Optional[float]:
    num = as_number(numerator)
    den = _positive(denominator)
    if num is None or den is None:
        return None
    return num / den


def _resolve_norm(norm: FleetNorm, is_reefer: bool):
    """Expected rate and tolerance, with defaults for unusable norm values."""
    default_rate = DEFAULT_EXPECTED_LITRES_PER_HOUR if is_reefer else DEFAULT_EXPECTED_KM_PER_LITRE
    expected = _positive(norm.expected_rate) or default_rate
    tolerance = _positive(norm.tolerance_percent) or DEFAULT_TOLERANCE_PERCENT
    return expected, tolerance


def _standard_distance(record: FuelRecord) -> Optional[float]:
    supplied = _positive(record.distance)
    if supplied is not None:
        return supplied
    current = as_number(record.km_reading)
    previous = as_number(record.previous_km_reading)
    if current is None or previous is None:
        return None
    if current <= previous:
        # Rollback or duplicate reading
        logger.warning(
            f"{record.fleet_id} {record.date}: odometer {current:g} not above previous {previous:g}"
        )
        return None
    return current - previous


def classify(variance_percent: float, tolerance_percent: float) -> str:
    """Performance band for a standard unit."""
    if abs(variance_percent) <= tolerance_percent:
        return "normal"
    return "poor" if variance_percent < 0 else "excellent"


def evaluate(
    record: FuelRecord,
    config: Optional[EfficiencyConfig] = None,
) -> EvaluatedRecord:
    """Derive efficiency metrics for one fuel record.

    Never raises: missing or malformed numbers produce None rates and a
    variance of 0 rather than an error.

    Args:
        record: The fill-up to evaluate.
        config: Fleet sets and norms; defaults to the built-in tables.

    Returns:
        EvaluatedRecord with the derived fields.
    """
    if config is None:
        config = default_efficiency_config()

    is_reefer = config.is_reefer(record.fleet_id)
    expected, tolerance = _resolve_norm(config.norm_for(record.fleet_id), is_reefer)

    distance = None
    cost_per_distance = None
    cost_per_hour = None

    if is_reefer:
        rate = _ratio(record.litres_filled, record.hours_operated)
        cost_per_hour = _ratio(record.total_cost, record.hours_operated)
        variance = (expected - rate) / expected * 100 if rate else 0.0
        performance = "normal"
        requires_debrief = False
    else:
        distance = _standard_distance(record)
        rate = None
        if distance is not None and distance > 0:
            rate = _ratio(distance, record.litres_filled)
            cost_per_distance = _ratio(record.total_cost, distance)
        variance = (rate - expected) / expected * 100 if rate else 0.0
        performance = classify(variance, tolerance)
        requires_debrief = performance != "normal"

    has_probe = record.fleet_id in config.probe_fleets
    discrepancy = as_number(record.probe_discrepancy)
    if discrepancy is None and has_probe:
        reading = as_number(record.probe_reading)
        litres = as_number(record.litres_filled)
        if reading is not None and litres is not None:
            discrepancy = litres - reading

    needs_verification = has_probe and (
        not record.probe_verified
        or (discrepancy is not None and abs(discrepancy) > config.probe_discrepancy_threshold)
    )

    logger.debug(
        f"{record.fleet_id} {record.date}: rate={rate} expected={expected} "
        f"variance={variance:.1f}% -> {performance}"
    )

    return EvaluatedRecord(
        record=record,
        is_reefer=is_reefer,
        distance=distance,
        rate=rate,
        expected_rate=expected,
        cost_per_distance=cost_per_distance,
        cost_per_hour=cost_per_hour,
        variance_percent=variance,
        tolerance_percent=tolerance,
        performance=performance,
        requires_debrief=requires_debrief,
        has_probe=has_probe,
        probe_discrepancy=discrepancy,
        needs_probe_verification=needs_verification,
    )


def evaluate_many(
    records: Iterable[FuelRecord],
    config: Optional[EfficiencyConfig] = None,
) -> List[EvaluatedRecord]:
    """Evaluate a batch against one config snapshot."""
    if config is None:
        config = default_efficiency_config()
    evaluated = [evaluate(r, config) for r in records]
    n_debrief = sum(1 for e in evaluated if e.requires_debrief)
    logger.info(f"Evaluated {len(evaluated)} fuel records, {n_debrief} require debrief")
    return evaluated
