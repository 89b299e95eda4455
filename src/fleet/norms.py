"""Operator-managed diesel norms: create on first use, edit in place, never delete."""

import json
import logging
from dataclasses import asdict, replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional

from src.config.constants import FLEETS_WITH_PROBES, MAX_TOLERANCE_PERCENT, REEFER_FLEETS
from src.config.schema import EfficiencyConfig, FleetNorm, default_norms

logger = logging.getLogger(__name__)


def _check_positive(name: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    if not number > 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return number


class NormsRegistry:
    """Per-fleet norms keyed by fleet id."""

    def __init__(self, norms: Optional[Dict[str, FleetNorm]] = None):
        self._norms: Dict[str, FleetNorm] = dict(norms) if norms is not None else default_norms()

    def __contains__(self, fleet_id: str) -> bool:
        return fleet_id in self._norms

    def __len__(self) -> int:
        return len(self._norms)

    def fleets(self):
        return sorted(self._norms)

    def get(self, fleet_id: str) -> FleetNorm:
        """Norm for a fleet, creating the default on first use."""
        norm = self._norms.get(fleet_id)
        if norm is None:
            norm = replace(
                FleetNorm.default_for(fleet_id, is_reefer=fleet_id in REEFER_FLEETS),
                last_updated=datetime.now().isoformat(),
            )
            self._norms[fleet_id] = norm
            logger.info(f"Created default norm for fleet {fleet_id}: {norm.expected_rate}")
        return norm

    def update(
        self,
        fleet_id: str,
        expected_rate: Optional[float] = None,
        tolerance_percent: Optional[float] = None,
        updated_by: str = "Operator",
    ) -> FleetNorm:
        """Edit a fleet's norm in place.

        Raises:
            ValueError: if a value is not positive or tolerance exceeds 50%.
        """
        norm = self.get(fleet_id)
        changes = {}
        if expected_rate is not None:
            changes["expected_rate"] = _check_positive("expected_rate", expected_rate)
        if tolerance_percent is not None:
            tolerance = _check_positive("tolerance_percent", tolerance_percent)
            if tolerance > MAX_TOLERANCE_PERCENT:
                raise ValueError(
                    f"tolerance_percent cannot exceed {MAX_TOLERANCE_PERCENT:g}%, got {tolerance:g}"
                )
            changes["tolerance_percent"] = tolerance
        if not changes:
            return norm

        norm = replace(
            norm, **changes,
            last_updated=datetime.now().isoformat(), updated_by=updated_by,
        )
        self._norms[fleet_id] = norm
        logger.info(f"Updated norm for fleet {fleet_id}: {changes} by {updated_by}")
        return norm

    def set_reefer(self, fleet_id: str, is_reefer: bool, updated_by: str = "Operator") -> FleetNorm:
        """Switch a fleet between km/L and L/h norms, keeping the current rate."""
        norm = self.get(fleet_id)
        if norm.is_reefer == is_reefer:
            return norm
        norm = replace(
            norm, is_reefer=is_reefer,
            last_updated=datetime.now().isoformat(), updated_by=updated_by,
        )
        self._norms[fleet_id] = norm
        return norm

    def reefer_fleets(self) -> frozenset:
        flagged = {f for f, n in self._norms.items() if n.is_reefer}
        unflagged = {f for f, n in self._norms.items() if not n.is_reefer}
        return frozenset((REEFER_FLEETS - unflagged) | flagged)

    def snapshot(self, probe_fleets: Iterable[str] = FLEETS_WITH_PROBES) -> EfficiencyConfig:
        """Immutable config for the evaluator; later edits do not affect it."""
        return EfficiencyConfig(
            reefer_fleets=self.reefer_fleets(),
            probe_fleets=frozenset(probe_fleets),
            norms=dict(self._norms),
        )


def save_norms(path: Path, registry: NormsRegistry) -> None:
    """Write all norms as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [asdict(registry.get(f)) for f in registry.fleets()]
    path.write_text(json.dumps(payload, indent=2) + "\n")


def load_norms(path: Path) -> NormsRegistry:
    """Load norms saved by save_norms, or the defaults if the file is absent.

    Raises:
        ValueError: if the file exists but an entry is malformed.
    """
    path = Path(path)
    if not path.exists():
        return NormsRegistry()

    norms = {}
    for entry in json.loads(path.read_text()):
        try:
            norm = FleetNorm(**entry)
        except TypeError as exc:
            raise ValueError(f"Malformed norm entry in {path}: {entry!r}") from exc
        norms[norm.fleet_id] = norm
    return NormsRegistry(norms)
