"""Map raw telematics events onto canonical driver-behaviour events.

One shared, table-driven implementation used by both the webhook receiver
and the batch/polling path. All tables come from a NormalizerConfig.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Tuple

import pandas as pd

from src.config.constants import (
    DEFAULT_SEVERITY,
    EVENT_REPORTER,
    INITIAL_EVENT_STATUS,
    MAX_EVENT_POINTS,
    MIN_EVENT_POINTS,
    SEVERITIES,
    UNKNOWN_EVENT_TYPE,
    UNKNOWN_IDENTITY,
)
from src.config.schema import NormalizerConfig, default_normalizer_config
from src.diesel.records import as_number
from src.events.payload import RawTelemetryEvent, parse_raw_event

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_YMD_SLASH = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})(?:[\sT]|$)")
_DMY_SHORT = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})(?:\s|$)")
_TIME_OF_DAY = re.compile(r"(?:\s|T)(\d{1,2}:\d{2})")


@dataclass(frozen=True)
class NormalizedEvent:
    driver_name: str
    fleet_number: str
    event_type: str           # canonical type
    event_date: str           # YYYY-MM-DD
    event_time: Optional[str]
    severity: str             # low | medium | high | critical
    points: int
    description: str
    location: str = ""
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    serial_number: Optional[str] = None
    raw_event_type: str = ""
    status: str = INITIAL_EVENT_STATUS
    resolved: bool = False
    action_taken: str = ""
    reported_by: str = EVENT_REPORTER


def normalize_type_token(raw_type: str) -> str:
    """Lower-case, trim and join internal whitespace with underscores."""
    return _WHITESPACE.sub("_", (raw_type or "").strip().lower())


def is_ignored(token: str, config: NormalizerConfig) -> bool:
    return any(ignored in token for ignored in config.ignored_tokens)


def canonical_type(token: str, config: NormalizerConfig) -> str:
    """First mapping entry whose substring occurs in the token, else "other"."""
    for substring, canonical in config.type_mapping:
        if substring in token:
            return canonical
    return UNKNOWN_EVENT_TYPE


def parse_points(value: Any) -> int:
    """Lenient int in [MIN_EVENT_POINTS, MAX_EVENT_POINTS]; non-numeric -> 0."""
    number = as_number(value)
    if number is None:
        return 0
    return int(min(max(number, MIN_EVENT_POINTS), MAX_EVENT_POINTS))


def resolve_rule(canonical: str, severity: Any, points: Any,
                 config: NormalizerConfig) -> Tuple[str, int]:
    """Severity and points: the rule table wins over the payload when it has an entry."""
    rule = config.rules.get(canonical)
    if rule is not None:
        return rule.severity, rule.points

    text = str(severity).strip().lower() if severity is not None else ""
    return (text if text in SEVERITIES else DEFAULT_SEVERITY), parse_points(points)


def _valid_date(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_event_date(value: Optional[str], today: Optional[date] = None) -> str:
    """Calendar date (YYYY-MM-DD) from one of the formats the feeds produce.

    YYYY/MM/DD and DD/MM/YY are reordered directly; anything else goes
    through pandas' parser. Empty or unparseable input yields today.
    """
    if today is None:
        today = date.today()
    text = (value or "").strip()
    if not text:
        return today.isoformat()

    match = _YMD_SLASH.match(text)
    if match:
        parsed = _valid_date(*(int(g) for g in match.groups()))
    else:
        match = _DMY_SHORT.match(text)
        if match:
            day, month, year = (int(g) for g in match.groups())
            parsed = _valid_date(2000 + year, month, day)
        else:
            try:
                stamp = pd.to_datetime(text, errors="coerce")
            except (ValueError, TypeError, OverflowError):
                stamp = pd.NaT
            parsed = None if pd.isna(stamp) else stamp.date().isoformat()

    if parsed is None:
        logger.warning(f"Unparseable event date {text!r}, using {today.isoformat()}")
        return today.isoformat()
    return parsed


def _time_of_day(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    match = _TIME_OF_DAY.search(" " + text)
    return match.group(1).zfill(5) if match else None


def normalize(
    raw: RawTelemetryEvent,
    config: Optional[NormalizerConfig] = None,
    today: Optional[date] = None,
) -> Optional[NormalizedEvent]:
    """Normalize one validated raw event.

    Returns None for noise events on the ignore list; the caller must drop
    those rather than store them. Never raises: field-level problems fall
    back to defaults.
    """
    if config is None:
        config = default_normalizer_config()

    token = normalize_type_token(raw.event_type)
    if is_ignored(token, config):
        logger.debug(f"Ignored event type {raw.event_type!r}")
        return None

    canonical = canonical_type(token, config)
    severity, points = resolve_rule(canonical, raw.severity, raw.points, config)

    fleet = raw.fleet_number or config.fleet_by_serial.get(raw.serial_number or "") or UNKNOWN_IDENTITY
    driver = raw.driver_name or config.driver_by_fleet.get(fleet) or UNKNOWN_IDENTITY

    date_text = raw.event_date or raw.event_time
    event_date = parse_event_date(date_text, today)
    if raw.event_date and raw.event_time:
        event_time = raw.event_time
    else:
        event_time = _time_of_day(date_text) or raw.event_time

    location = raw.location or ""
    if not location and (raw.latitude or raw.longitude):
        location = f"{raw.latitude or ''}, {raw.longitude or ''}"

    return NormalizedEvent(
        driver_name=driver,
        fleet_number=fleet,
        event_type=canonical,
        event_date=event_date,
        event_time=event_time,
        severity=severity,
        points=points,
        description=raw.description or f"{raw.event_type} event detected for {driver}",
        location=location,
        latitude=raw.latitude,
        longitude=raw.longitude,
        serial_number=raw.serial_number,
        raw_event_type=raw.event_type,
    )


def normalize_payload(
    payload: Any,
    config: Optional[NormalizerConfig] = None,
    today: Optional[date] = None,
) -> Optional[NormalizedEvent]:
    """Validate then normalize an untyped payload.

    Raises:
        InvalidPayloadError: only for structurally invalid payloads.
    """
    return normalize(parse_raw_event(payload), config, today)
