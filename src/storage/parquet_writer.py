"""Write evaluated fuel records and normalized events to Parquet files."""

from dataclasses import asdict
from pathlib import Path
from typing import List

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from src.diesel.records import EvaluatedRecord
from src.events.normalizer import NormalizedEvent
from src.storage.schema_definition import EVALUATED_SCHEMA, EVENT_SCHEMA


class ParquetWriter:
    """Writes batch results under an output directory."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def _write(self, rows: List[dict], schema: pa.Schema, subdir: str, name: str) -> Path:
        df = pd.DataFrame(rows, columns=schema.names)

        out_dir = self.output_dir / subdir
        out_dir.mkdir(parents=True, exist_ok=True)
        output_path = out_dir / name

        table = pa.Table.from_pandas(df, schema=schema, preserve_index=False)
        pq.write_table(table, output_path, compression="snappy")
        return output_path

    def write_evaluated(self, records: List[EvaluatedRecord], tag: str) -> Path:
        """Write evaluated records to diesel/evaluated_<tag>.parquet.

        Args:
            records: Output of the efficiency evaluator.
            tag: File name suffix, usually the batch date.

        Returns:
            Path to the written Parquet file.
        """
        rows = [r.to_dict() for r in records]
        return self._write(rows, EVALUATED_SCHEMA, "diesel", f"evaluated_{tag}.parquet")

    def write_events(self, events: List[NormalizedEvent], tag: str) -> Path:
        """Write normalized events to events/events_<tag>.parquet."""
        rows = [asdict(e) for e in events]
        return self._write(rows, EVENT_SCHEMA, "events", f"events_{tag}.parquet")
