"""PyArrow schemas for evaluated fuel records and normalized events."""

import pyarrow as pa


def build_evaluated_schema() -> pa.Schema:
    """Schema for evaluated diesel records.

    Record fields first, then the derived metrics. Optional numbers are
    nullable float64 so undefined rates survive as nulls.
    """
    fields = []

    # Record
    fields.append(pa.field("record_id", pa.string()))
    fields.append(pa.field("fleet_id", pa.string()))
    fields.append(pa.field("date", pa.string()))
    fields.append(pa.field("driver_name", pa.string()))
    fields.append(pa.field("fuel_station", pa.string()))
    fields.append(pa.field("currency", pa.string()))
    for col in ("litres_filled", "total_cost", "km_reading", "previous_km_reading",
                "hours_operated", "probe_reading"):
        fields.append(pa.field(col, pa.float64()))
    fields.append(pa.field("probe_verified", pa.bool_()))
    fields.append(pa.field("trip_id", pa.string()))
    fields.append(pa.field("linked_horse_id", pa.string()))

    # Derived
    fields.append(pa.field("is_reefer", pa.bool_()))
    for col in ("distance", "rate", "expected_rate", "cost_per_distance", "cost_per_hour",
                "variance_percent", "tolerance_percent", "probe_discrepancy"):
        fields.append(pa.field(col, pa.float64()))
    fields.append(pa.field("performance", pa.string()))
    fields.append(pa.field("requires_debrief", pa.bool_()))
    fields.append(pa.field("has_probe", pa.bool_()))
    fields.append(pa.field("needs_probe_verification", pa.bool_()))

    return pa.schema(fields)


def build_event_schema() -> pa.Schema:
    """Schema for normalized driver-behaviour events."""
    string_cols = [
        "driver_name", "fleet_number", "event_type", "event_date", "event_time",
        "severity", "description", "location", "latitude", "longitude",
        "serial_number", "raw_event_type", "status", "action_taken", "reported_by",
    ]
    fields = [pa.field(col, pa.string()) for col in string_cols]
    fields.append(pa.field("points", pa.int64()))
    fields.append(pa.field("resolved", pa.bool_()))
    return pa.schema(fields)


EVALUATED_SCHEMA = build_evaluated_schema()
EVENT_SCHEMA = build_event_schema()
