"""Tests for batch file processing."""

import json
from datetime import date

import pyarrow.parquet as pq
import pytest

from src.pipeline.batch import BatchRunner, read_records


@pytest.fixture
def runner(tmp_path):
    return BatchRunner(tmp_path / "out", today=date(2025, 7, 1))


class TestReadRecords:
    def test_csv_cells_are_text_or_none(self, fuel_csv):
        rows = read_records(fuel_csv)
        assert len(rows) == 4
        assert rows[0]["litresFilled"] == "450"
        assert rows[0]["hoursOperated"] is None
        assert rows[3]["fleetNumber"] is None

    def test_json_array(self, tmp_path, raw_events):
        path = tmp_path / "events.json"
        path.write_text(json.dumps(raw_events))
        rows = read_records(path)
        assert len(rows) == 4
        assert rows[0]["serialNumber"] == "357660104031745"
        assert rows[3]["eventType"] is None

    def test_json_lines(self, tmp_path, raw_events):
        path = tmp_path / "events.jsonl"
        path.write_text("\n".join(json.dumps(e) for e in raw_events) + "\n")
        assert len(read_records(path)) == 4

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "fuel.xlsx"
        path.write_text("")
        with pytest.raises(ValueError, match="Unsupported"):
            read_records(path)


class TestRunDiesel:
    def test_manifest(self, runner, fuel_csv):
        manifest = runner.run_diesel(read_records(fuel_csv))
        assert manifest["rows_read"] == 4
        assert manifest["rows_skipped"] == 1
        assert manifest["records_evaluated"] == 3
        assert manifest["requiring_debrief"] == 1
        assert manifest["poor_performance"] == 1
        assert manifest["average_km_per_litre"] == round(2880 / 1300, 3)

    def test_outputs_written(self, runner, fuel_csv, tmp_path):
        manifest = runner.run_diesel(read_records(fuel_csv))
        out = tmp_path / "out"

        table = pq.read_table(out / "diesel" / "evaluated_2025-07-01.parquet")
        assert table.num_rows == 3
        assert table.column("currency").to_pylist() == ["ZAR", "ZAR", "ZAR"]
        assert table.column("total_cost").to_pylist()[1] == 11100.0

        saved = json.loads((out / "metadata" / "diesel_manifest.json").read_text())
        assert saved["output"] == manifest["output"]
        assert "generated_at" in saved


class TestRunEvents:
    def test_manifest(self, runner, raw_events):
        manifest = runner.run_events(raw_events)
        assert manifest["rows_read"] == 4
        assert manifest["events_written"] == 2
        assert manifest["ignored"] == 1
        assert manifest["rejected"] == 1
        assert manifest["critical_events"] == 1
        assert manifest["high_risk_drivers"] == ["Phillimon Kwarire", "Taurayi Vherenaisi"]

    def test_oversized_points_do_not_abort_batch(self, runner, tmp_path):
        manifest = runner.run_events([{"eventType": "Mystery", "points": 5000000000}])
        assert manifest["events_written"] == 1
        assert (tmp_path / "out" / "metadata" / "events_manifest.json").exists()

        rows = pq.read_table(manifest["output"]).to_pylist()
        assert rows[0]["points"] == 1000

    def test_events_parquet(self, runner, tmp_path, raw_events):
        runner.run_events(raw_events)
        rows = pq.read_table(tmp_path / "out" / "events" / "events_2025-07-01.parquet").to_pylist()
        assert [r["event_type"] for r in rows] == ["seatbelt_violation", "accident"]
        assert rows[1]["event_date"] == "2025-06-16"
        assert rows[1]["points"] == 50
