"""Configuration objects passed explicitly into the evaluator and normalizer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from src.config.constants import (
    DEFAULT_EXPECTED_KM_PER_LITRE,
    DEFAULT_EXPECTED_LITRES_PER_HOUR,
    DEFAULT_NORMS,
    DEFAULT_REEFER_TOLERANCE_PERCENT,
    DEFAULT_TOLERANCE_PERCENT,
    DRIVER_BY_FLEET,
    EVENT_RULES,
    EVENT_TYPE_MAPPING,
    EVENT_TYPES,
    FLEET_BY_SERIAL,
    FLEETS_WITH_PROBES,
    IGNORED_EVENT_TOKENS,
    PROBE_DISCREPANCY_THRESHOLD,
    REEFER_FLEETS,
    SEVERITIES,
)


@dataclass(frozen=True)
class FleetNorm:
    """Expected consumption for one fleet.

    expected_rate is km/L for standard units and L/h for reefer units.
    """

    fleet_id: str
    expected_rate: float
    tolerance_percent: float
    is_reefer: bool = False
    last_updated: str = ""
    updated_by: str = "System Default"

    @classmethod
    def default_for(cls, fleet_id: str, is_reefer: bool = False) -> FleetNorm:
        if is_reefer:
            return cls(fleet_id, DEFAULT_EXPECTED_LITRES_PER_HOUR,
                       DEFAULT_REEFER_TOLERANCE_PERCENT, is_reefer=True)
        return cls(fleet_id, DEFAULT_EXPECTED_KM_PER_LITRE, DEFAULT_TOLERANCE_PERCENT)


@dataclass(frozen=True)
class EfficiencyConfig:
    """Read-only snapshot consumed by the efficiency evaluator."""

    reefer_fleets: FrozenSet[str] = REEFER_FLEETS
    probe_fleets: FrozenSet[str] = FLEETS_WITH_PROBES
    norms: Mapping[str, FleetNorm] = field(default_factory=dict)
    probe_discrepancy_threshold: float = PROBE_DISCREPANCY_THRESHOLD

    def is_reefer(self, fleet_id: str) -> bool:
        return fleet_id in self.reefer_fleets

    def norm_for(self, fleet_id: str) -> FleetNorm:
        """Configured norm, or the hard-coded fallback when none exists."""
        norm = self.norms.get(fleet_id)
        if norm is not None:
            return norm
        return FleetNorm.default_for(fleet_id, is_reefer=self.is_reefer(fleet_id))


@dataclass(frozen=True)
class EventRule:
    severity: str
    points: int


@dataclass(frozen=True)
class NormalizerConfig:
    """Tables consumed by the event normalizer."""

    type_mapping: Tuple[Tuple[str, str], ...] = EVENT_TYPE_MAPPING
    rules: Mapping[str, EventRule] = field(default_factory=dict)
    ignored_tokens: Tuple[str, ...] = IGNORED_EVENT_TOKENS
    fleet_by_serial: Mapping[str, str] = field(default_factory=dict)
    driver_by_fleet: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Reject tables the normalizer cannot apply.

        Raises:
            ValueError: naming the offending section and entry.
        """
        for token, canonical in self.type_mapping:
            if token != token.lower():
                raise ValueError(f"event_type_mapping token must be lower-case: {token!r}")
            if canonical not in EVENT_TYPES:
                raise ValueError(f"event_type_mapping has unknown event type {canonical!r}")
        for canonical, rule in self.rules.items():
            if canonical not in EVENT_TYPES:
                raise ValueError(f"event_rules has unknown event type {canonical!r}")
            if rule.severity not in SEVERITIES:
                raise ValueError(
                    f"event_rules entry {canonical!r} has unknown severity {rule.severity!r}"
                )


def default_norms() -> Dict[str, FleetNorm]:
    return {
        fleet: FleetNorm(fleet, rate, tolerance, is_reefer=reefer)
        for fleet, (rate, tolerance, reefer) in DEFAULT_NORMS.items()
    }


def default_efficiency_config() -> EfficiencyConfig:
    return EfficiencyConfig(norms=default_norms())


def default_normalizer_config() -> NormalizerConfig:
    return NormalizerConfig(
        rules={k: EventRule(sev, pts) for k, (sev, pts) in EVENT_RULES.items()},
        fleet_by_serial=dict(FLEET_BY_SERIAL),
        driver_by_fleet=dict(DRIVER_BY_FLEET),
    )


def _section(doc: dict, key: str, expected: type):
    value = doc.get(key)
    if value is not None and not isinstance(value, expected):
        raise ValueError(
            f"Config section {key!r} must be a {expected.__name__}, got {type(value).__name__}"
        )
    return value


def load_config(
    path: Optional[Path] = None,
) -> Tuple[EfficiencyConfig, NormalizerConfig]:
    """Load engine configuration from a JSON file.

    Recognised top-level keys (all optional, missing ones keep defaults):
    reefer_fleets, probe_fleets, probe_discrepancy_threshold, norms,
    event_type_mapping, event_rules, ignored_events, fleet_by_serial,
    driver_by_fleet.

    Raises:
        ValueError: if the file is not valid JSON or a section has the wrong shape.
    """
    efficiency = default_efficiency_config()
    normalizer = default_normalizer_config()
    if path is None:
        return efficiency, normalizer

    try:
        doc = json.loads(Path(path).read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Config file {path} is not valid JSON: {exc}") from exc
    if not isinstance(doc, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    reefer = _section(doc, "reefer_fleets", list)
    probes = _section(doc, "probe_fleets", list)
    threshold = doc.get("probe_discrepancy_threshold")
    norms_doc = _section(doc, "norms", dict)

    norms = dict(efficiency.norms)
    reefer_fleets = frozenset(reefer) if reefer is not None else efficiency.reefer_fleets
    if norms_doc:
        for fleet, entry in norms_doc.items():
            if not isinstance(entry, dict) or "expected_rate" not in entry:
                raise ValueError(f"Norm for fleet {fleet!r} needs an expected_rate")
            norms[fleet] = FleetNorm(
                fleet_id=fleet,
                expected_rate=float(entry["expected_rate"]),
                tolerance_percent=float(entry.get("tolerance_percent", DEFAULT_TOLERANCE_PERCENT)),
                is_reefer=bool(entry.get("is_reefer", fleet in reefer_fleets)),
                last_updated=str(entry.get("last_updated", "")),
                updated_by=str(entry.get("updated_by", "Config File")),
            )

    efficiency = EfficiencyConfig(
        reefer_fleets=reefer_fleets,
        probe_fleets=frozenset(probes) if probes is not None else efficiency.probe_fleets,
        norms=norms,
        probe_discrepancy_threshold=(
            float(threshold) if threshold is not None else efficiency.probe_discrepancy_threshold
        ),
    )

    mapping = _section(doc, "event_type_mapping", list)
    rules_doc = _section(doc, "event_rules", dict)
    ignored = _section(doc, "ignored_events", list)
    serials = _section(doc, "fleet_by_serial", dict)
    drivers = _section(doc, "driver_by_fleet", dict)

    rules = dict(normalizer.rules)
    if rules_doc:
        for canonical, entry in rules_doc.items():
            if not isinstance(entry, dict) or not {"severity", "points"} <= entry.keys():
                raise ValueError(f"Event rule for {canonical!r} needs severity and points")
            rules[canonical] = EventRule(str(entry["severity"]), int(entry["points"]))

    normalizer = NormalizerConfig(
        type_mapping=(
            tuple((str(tok).lower(), str(canon)) for tok, canon in mapping)
            if mapping is not None else normalizer.type_mapping
        ),
        rules=rules,
        ignored_tokens=(
            tuple(str(t).lower() for t in ignored) if ignored is not None
            else normalizer.ignored_tokens
        ),
        fleet_by_serial={**normalizer.fleet_by_serial, **(serials or {})},
        driver_by_fleet={**normalizer.driver_by_fleet, **(drivers or {})},
    )
    return efficiency, normalizer
