"""Fuel record value objects."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

# snake_case field -> accepted source keys (dashboard/CSV export uses camelCase)
_FIELD_KEYS = {
    "record_id": ("record_id", "id"),
    "fleet_id": ("fleet_id", "fleetNumber", "fleet_number"),
    "date": ("date",),
    "litres_filled": ("litres_filled", "litresFilled"),
    "total_cost": ("total_cost", "totalCost"),
    "currency": ("currency",),
    "km_reading": ("km_reading", "kmReading"),
    "previous_km_reading": ("previous_km_reading", "previousKmReading"),
    "distance": ("distance", "distanceTravelled"),
    "hours_operated": ("hours_operated", "hoursOperated"),
    "probe_reading": ("probe_reading", "probeReading"),
    "probe_discrepancy": ("probe_discrepancy", "probeDiscrepancy"),
    "probe_verified": ("probe_verified", "probeVerified"),
    "trip_id": ("trip_id", "tripId"),
    "linked_horse_id": ("linked_horse_id", "linkedHorseId"),
    "driver_name": ("driver_name", "driverName"),
    "fuel_station": ("fuel_station", "fuelStation"),
}

_NUMERIC_FIELDS = {
    "litres_filled", "total_cost", "km_reading", "previous_km_reading",
    "distance", "hours_operated", "probe_reading", "probe_discrepancy",
}


def as_number(value: Any) -> Optional[float]:
    """Lenient float conversion: None for missing, non-numeric, NaN or inf."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "y")
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def _as_text(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class FuelRecord:
    """One diesel fill-up.

    Standard units carry odometer readings; reefer units carry hours operated.
    Which pair is meaningful is decided by the evaluator from the fleet id.
    """

    fleet_id: str
    date: str = ""
    litres_filled: Optional[float] = None
    total_cost: Optional[float] = None
    currency: str = "ZAR"
    km_reading: Optional[float] = None
    previous_km_reading: Optional[float] = None
    distance: Optional[float] = None
    hours_operated: Optional[float] = None
    probe_reading: Optional[float] = None
    probe_discrepancy: Optional[float] = None
    probe_verified: bool = False
    trip_id: Optional[str] = None
    linked_horse_id: Optional[str] = None
    driver_name: Optional[str] = None
    fuel_station: Optional[str] = None
    record_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> FuelRecord:
        """Build a record from a loosely typed row without raising.

        Unknown keys are ignored; malformed numbers become None.
        """
        values: Dict[str, Any] = {}
        for name, keys in _FIELD_KEYS.items():
            raw = next((row[k] for k in keys if k in row), None)
            if name in _NUMERIC_FIELDS:
                values[name] = as_number(raw)
            elif name == "probe_verified":
                values[name] = _as_flag(raw)
            else:
                values[name] = _as_text(raw)

        values["fleet_id"] = values["fleet_id"] or ""
        values["date"] = values["date"] or ""
        values["currency"] = (values["currency"] or "ZAR").upper()
        return cls(**values)


@dataclass(frozen=True)
class EvaluatedRecord:
    """A FuelRecord plus the metrics derived by the efficiency evaluator."""

    record: FuelRecord
    is_reefer: bool
    distance: Optional[float]
    rate: Optional[float]              # km/L (standard) or L/h (reefer)
    expected_rate: float
    cost_per_distance: Optional[float]
    cost_per_hour: Optional[float]
    variance_percent: float
    tolerance_percent: float
    performance: str                   # "poor", "normal" or "excellent"
    requires_debrief: bool
    has_probe: bool
    probe_discrepancy: Optional[float]
    needs_probe_verification: bool

    @property
    def fleet_id(self) -> str:
        return self.record.fleet_id

    def to_dict(self) -> Dict[str, Any]:
        """Flatten record and derived fields into one plain dict."""
        out = asdict(self.record)
        derived = asdict(self)
        del derived["record"]
        out.update(derived)
        return out
