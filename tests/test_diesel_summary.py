"""Tests for fleet-level diesel reporting."""

from dataclasses import replace

import pytest

from src.diesel.efficiency import evaluate_many
from src.diesel.records import FuelRecord
from src.diesel.summary import fleet_summary, filter_records, per_fleet_summary


@pytest.fixture
def evaluated(standard_record, reefer_record, efficiency_config):
    records = [
        standard_record,
        replace(standard_record, litres_filled=600.0, date="2025-01-16", trip_id="T-1"),
        reefer_record,
        FuelRecord(fleet_id="22H", date="2025-01-16", litres_filled=420.0, total_cost=400.0,
                   currency="USD", distance=1260.0, probe_reading=340.0, probe_verified=True,
                   driver_name="Adrian Moyo"),
    ]
    return evaluate_many(records, efficiency_config)


class TestFleetSummary:
    def test_totals(self, evaluated):
        summary = fleet_summary(evaluated)
        assert summary.total_records == 4
        assert summary.total_litres == pytest.approx(450 + 600 + 250 + 420)
        assert summary.total_distance == pytest.approx(1440 * 2 + 1260)
        assert summary.total_reefer_hours == 50.0
        assert summary.reefer_records == 1

    def test_counts(self, evaluated):
        summary = fleet_summary(evaluated)
        assert summary.records_requiring_debrief == 1
        assert summary.poor_performance_records == 1
        assert summary.excellent_performance_records == 0
        assert summary.linked_to_trips == 1
        assert summary.records_with_probe == 1
        assert summary.records_with_verified_probe == 1
        # 420 - 340 = 80 L exceeds the 50 L threshold
        assert summary.records_needing_probe_verification == 1

    def test_currency_breakdown(self, evaluated):
        summary = fleet_summary(evaluated)
        assert summary.records_by_currency == {"ZAR": 3, "USD": 1}
        assert summary.cost_by_currency["USD"] == 400.0
        assert summary.cost_by_currency["ZAR"] == pytest.approx(8325.0 * 2 + 4875.0)

    def test_averages(self, evaluated):
        summary = fleet_summary(evaluated)
        assert summary.average_km_per_litre == pytest.approx(4140 / 1720)
        assert summary.average_cost_per_km == pytest.approx(summary.total_cost / 4140)
        assert summary.average_litres_per_hour == pytest.approx(1720 / 50)

    def test_empty(self):
        summary = fleet_summary([])
        assert summary.total_records == 0
        assert summary.average_km_per_litre == 0.0
        assert summary.average_litres_per_hour == 0.0

    def test_odometer_rollback_excluded_from_distance(self, evaluated, standard_record,
                                                      efficiency_config):
        rollback = replace(standard_record, km_reading=100.0, previous_km_reading=5000.0)
        summary = fleet_summary(evaluated + evaluate_many([rollback], efficiency_config))
        assert summary.total_distance == pytest.approx(1440 * 2 + 1260)
        assert summary.average_km_per_litre == pytest.approx(4140 / (1720 + 450))

    def test_zero_denominators(self, efficiency_config):
        summary = fleet_summary(evaluate_many([FuelRecord(fleet_id="6H")], efficiency_config))
        assert summary.total_records == 1
        assert summary.average_km_per_litre == 0.0
        assert summary.average_cost_per_km == 0.0


class TestPerFleet:
    def test_grouping(self, evaluated):
        table = per_fleet_summary(evaluated)
        assert list(table.index) == ["22H", "4F", "6H"]
        assert table.loc["6H", "records"] == 2
        assert table.loc["6H", "debriefs"] == 1
        assert table.loc["6H", "km_per_litre"] == pytest.approx(2880 / 1050)
        assert table.loc["4F", "km_per_litre"] == 0.0

    def test_empty(self):
        table = per_fleet_summary([])
        assert table.empty
        assert "km_per_litre" in table.columns


class TestFilters:
    def test_fleet_and_date(self, evaluated):
        assert len(filter_records(evaluated, fleet="6H")) == 2
        assert len(filter_records(evaluated, date="2025-01-16")) == 2
        assert len(filter_records(evaluated, fleet="6H", date="2025-01-16")) == 1

    def test_driver_and_currency(self, evaluated):
        assert len(filter_records(evaluated, driver="Adrian Moyo")) == 1
        assert len(filter_records(evaluated, currency="USD")) == 1

    @pytest.mark.parametrize("status,expected", [
        ("has-probe", 1),
        ("verified", 1),
        ("needs-verification", 1),
        ("large-discrepancy", 1),
        ("reefer-units", 1),
    ])
    def test_probe_status(self, evaluated, status, expected):
        assert len(filter_records(evaluated, probe_status=status)) == expected

    def test_threshold_for_large_discrepancy(self, evaluated):
        assert filter_records(evaluated, probe_status="large-discrepancy", threshold=100) == []

    def test_unknown_probe_status(self, evaluated):
        with pytest.raises(ValueError, match="probe status"):
            filter_records(evaluated, probe_status="broken")
