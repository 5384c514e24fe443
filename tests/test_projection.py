from __future__ import annotations

import pytest

from src.meterstore.projection import ALL_FIELDS, Projection, fields_for


@pytest.mark.parametrize("value", [-3, 0, 7, 8, 100])
def test_out_of_range_values_normalize_to_all(value: int) -> None:
    assert Projection.from_int(value) is Projection.ALL


@pytest.mark.parametrize("value", [1, 2, 3, 4, 5, 6])
def test_in_range_values_are_kept(value: int) -> None:
    assert Projection.from_int(value) == value


def test_gas_selects_only_gas() -> None:
    assert [f.label for f in fields_for(Projection.GAS)] == ["GasReceived"]


def test_combined_groups() -> None:
    labels = [f.label for f in fields_for(Projection.GAS | Projection.POWER)]

    assert labels == ["GasReceived", "PowerReceived", "PowerDelivered"]


def test_totals_selects_the_four_totals() -> None:
    labels = {f.label for f in fields_for(Projection.TOTALS)}

    assert labels == {
        "TotalPowerDeliveredLowTarif",
        "TotalPowerDeliveredPeakTarif",
        "TotalPowerReceivedLowTarif",
        "TotalPowerReceivedPeakTarif",
    }


def test_all_includes_tariff() -> None:
    assert fields_for(0) == ALL_FIELDS
    assert "Tarif" in [f.label for f in fields_for(Projection.ALL)]
