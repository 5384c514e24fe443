from __future__ import annotations

from src.meterstore.export import to_csv, to_structured
from src.meterstore.projection import Projection
from src.meterstore.readout import StoredRecord

FULL = StoredRecord(
    timestamp="2020-02-03 13:22:33",
    tarif=2,
    power_received=0.5,
    power_delivered=0.25,
    gas_received=417.143,
    total_power_delivered_low=1.0,
    total_power_delivered_peak=2.0,
    total_power_received_low=3.0,
    total_power_received_peak=4.0,
)


def test_gas_projection_keeps_only_timestamp_and_gas() -> None:
    assert to_structured([FULL], Projection.GAS) == [
        {"Timestamp": "2020-02-03 13:22:33", "GasReceived": 417.143}
    ]


def test_all_projection_emits_every_field() -> None:
    (out,) = to_structured([FULL])

    assert out == {
        "Timestamp": "2020-02-03 13:22:33",
        "Tarif": 2,
        "PowerReceived": 0.5,
        "PowerDelivered": 0.25,
        "GasReceived": 417.143,
        "TotalPowerDeliveredLowTarif": 1.0,
        "TotalPowerDeliveredPeakTarif": 2.0,
        "TotalPowerReceivedLowTarif": 3.0,
        "TotalPowerReceivedPeakTarif": 4.0,
    }


def test_csv_has_header_and_three_decimals() -> None:
    text = to_csv([FULL, FULL], Projection.POWER)

    assert text.splitlines() == [
        "Timestamp,PowerReceived,PowerDelivered",
        "2020-02-03 13:22:33,0.500,0.250",
        "2020-02-03 13:22:33,0.500,0.250",
    ]


def test_csv_all_keeps_tariff_as_integer() -> None:
    header, line = to_csv([FULL]).splitlines()

    assert header.startswith("Timestamp,Tarif,PowerReceived")
    assert line.startswith("2020-02-03 13:22:33,2,0.500,0.250,417.143")


def test_csv_of_no_records_is_just_the_header() -> None:
    assert to_csv([], Projection.GAS) == "Timestamp,GasReceived\n"
