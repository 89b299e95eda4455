"""Shared test fixtures."""

from datetime import date

import pytest

from src.config.schema import default_efficiency_config, default_normalizer_config
from src.diesel.records import FuelRecord


@pytest.fixture
def efficiency_config():
    return default_efficiency_config()


@pytest.fixture
def normalizer_config():
    return default_normalizer_config()


@pytest.fixture
def today():
    return date(2025, 7, 1)


@pytest.fixture
def standard_record():
    # 1440 km on 450 L against a 3.2 km/L norm
    return FuelRecord(
        fleet_id="6H",
        date="2025-01-15",
        litres_filled=450.0,
        total_cost=8325.0,
        currency="ZAR",
        km_reading=125000.0,
        previous_km_reading=123560.0,
        driver_name="Enock Mukonyerwa",
    )


@pytest.fixture
def reefer_record():
    return FuelRecord(
        fleet_id="4F",
        date="2025-01-18",
        litres_filled=250.0,
        total_cost=4875.0,
        hours_operated=50.0,
        linked_horse_id="6H",
    )


@pytest.fixture
def seatbelt_payload():
    return {
        "eventType": "Seatbelt_Violation_Beep",
        "serialNumber": "357660104031745",
        "eventTime": "2025/06/16 14:32:10",
        "severity": "low",
        "points": 99,
        "latitude": "-17.8292",
        "longitude": "31.0522",
    }


FUEL_CSV = """\
fleetNumber,date,litresFilled,totalCost,currency,kmReading,previousKmReading,hoursOperated,driverName
6H,2025-01-15,450,8325,ZAR,125000,123560,,Enock Mukonyerwa
6H,2025-01-16,600,"11,100",zar,126440,125000,,Enock Mukonyerwa
4F,2025-01-18,250,4875,ZAR,,,50,
,2025-01-19,100,1850,ZAR,,,,
"""


@pytest.fixture
def fuel_csv(tmp_path):
    path = tmp_path / "fuel.csv"
    path.write_text(FUEL_CSV)
    return path


@pytest.fixture
def raw_events():
    # seatbelt, ignored noise, critical, no event type
    return [
        {"eventType": "Seatbelt_Violation_Beep", "serialNumber": "357660104031745",
         "eventTime": "2025/06/16 14:32:10"},
        {"eventType": "Jolt", "serialNumber": "357660104031745"},
        {"eventType": "Accident", "fleetNumber": "24H", "eventDate": "16/06/25"},
        {"severity": "high"},
    ]
