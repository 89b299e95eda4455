"""Batch evaluation of fuel records and normalization of event exports.

Reads a CSV or JSON file, runs every row through the relevant engine, writes
Parquet output plus a JSON manifest describing the run.
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from src.config.schema import (
    EfficiencyConfig,
    NormalizerConfig,
    default_efficiency_config,
    default_normalizer_config,
)
from src.diesel.efficiency import evaluate_many
from src.diesel.records import FuelRecord
from src.diesel.summary import fleet_summary
from src.events.normalizer import normalize
from src.events.payload import InvalidPayloadError, parse_raw_event
from src.events.summary import behavior_summary
from src.storage.parquet_writer import ParquetWriter

logger = logging.getLogger(__name__)


def read_records(path: Path) -> List[Dict[str, Any]]:
    """Load rows from .csv, .json (array) or .jsonl files.

    Empty cells become None. Every value is read as text for CSV so serial
    numbers keep their leading digits; the engines parse numbers themselves.

    Raises:
        ValueError: for an unsupported file extension.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path, dtype=str, keep_default_na=True)
    elif suffix == ".jsonl":
        df = pd.read_json(path, lines=True, dtype=False, convert_dates=False)
    elif suffix == ".json":
        df = pd.read_json(path, orient="records", dtype=False, convert_dates=False)
    else:
        raise ValueError(f"Unsupported input format {suffix!r} for {path}")

    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


class BatchRunner:
    """Runs the efficiency evaluator or event normalizer over a file's rows."""

    def __init__(
        self,
        output_dir: Path,
        efficiency_config: Optional[EfficiencyConfig] = None,
        normalizer_config: Optional[NormalizerConfig] = None,
        today: Optional[date] = None,
    ):
        self.output_dir = Path(output_dir)
        self.efficiency_config = efficiency_config or default_efficiency_config()
        self.normalizer_config = normalizer_config or default_normalizer_config()
        self.today = today or date.today()
        self.writer = ParquetWriter(self.output_dir)

    def run_diesel(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Evaluate fuel rows and write diesel/evaluated_<date>.parquet."""
        records = [FuelRecord.from_mapping(row) for row in rows]
        skipped = sum(1 for r in records if not r.fleet_id)
        records = [r for r in records if r.fleet_id]
        if skipped:
            logger.warning(f"Skipped {skipped} fuel rows without a fleet number")

        evaluated = evaluate_many(records, self.efficiency_config)
        path = self.writer.write_evaluated(evaluated, self.today.isoformat())
        summary = fleet_summary(evaluated)

        manifest = {
            "kind": "diesel",
            "rows_read": len(rows),
            "rows_skipped": skipped,
            "records_evaluated": len(evaluated),
            "requiring_debrief": summary.records_requiring_debrief,
            "poor_performance": summary.poor_performance_records,
            "excellent_performance": summary.excellent_performance_records,
            "needing_probe_verification": summary.records_needing_probe_verification,
            "average_km_per_litre": round(summary.average_km_per_litre, 3),
            "output": str(path),
        }
        self._write_manifest(manifest)
        return manifest

    def run_events(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Normalize event rows and write events/events_<date>.parquet.

        Structurally invalid rows are counted and skipped; ignored noise
        events are counted and dropped.
        """
        events = []
        rejected = 0
        ignored = 0
        for i, row in enumerate(rows):
            try:
                raw = parse_raw_event(row)
            except InvalidPayloadError as exc:
                logger.warning(f"Row {i}: {exc}")
                rejected += 1
                continue
            event = normalize(raw, self.normalizer_config, self.today)
            if event is None:
                ignored += 1
            else:
                events.append(event)

        path = self.writer.write_events(events, self.today.isoformat())
        summary = behavior_summary(events)
        logger.info(
            f"Normalized {len(events)} events ({ignored} ignored, {rejected} rejected)"
        )

        manifest = {
            "kind": "events",
            "rows_read": len(rows),
            "events_written": len(events),
            "ignored": ignored,
            "rejected": rejected,
            "critical_events": summary.critical_events,
            "high_risk_drivers": [d.driver_name for d in summary.high_risk_drivers],
            "output": str(path),
        }
        self._write_manifest(manifest)
        return manifest

    def _write_manifest(self, manifest: Dict[str, Any]) -> None:
        """Write run metadata next to the output."""
        meta_dir = self.output_dir / "metadata"
        meta_dir.mkdir(parents=True, exist_ok=True)
        manifest = {"generated_at": datetime.now().isoformat(), **manifest}
        (meta_dir / f"{manifest['kind']}_manifest.json").write_text(
            json.dumps(manifest, indent=2) + "\n"
        )
