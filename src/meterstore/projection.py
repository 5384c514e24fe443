"""Field groups a caller can ask for.

Every projection is resolved once to the fields it carries; the store uses the
attribute names to pick columns and the serializers use the labels as keys.
"""
from __future__ import annotations

from enum import IntFlag
from typing import NamedTuple


class Field(NamedTuple):
    attr: str  # StoredRecord attribute and readouts column
    label: str  # name in serialized output


class Projection(IntFlag):
    ALL = 0
    GAS = 1
    POWER = 2
    TOTALS = 4

    @classmethod
    def from_int(cls, value: int) -> "Projection":
        # The full combination narrows nothing, so it is the same as ALL.
        if value <= cls.ALL or value >= cls.GAS | cls.POWER | cls.TOTALS:
            return cls.ALL
        return cls(value)


TARIF = Field("tarif", "Tarif")
GAS_FIELDS = (Field("gas_received", "GasReceived"),)
POWER_FIELDS = (
    Field("power_received", "PowerReceived"),
    Field("power_delivered", "PowerDelivered"),
)
TOTALS_FIELDS = (
    Field("total_power_delivered_low", "TotalPowerDeliveredLowTarif"),
    Field("total_power_delivered_peak", "TotalPowerDeliveredPeakTarif"),
    Field("total_power_received_low", "TotalPowerReceivedLowTarif"),
    Field("total_power_received_peak", "TotalPowerReceivedPeakTarif"),
)
ALL_FIELDS = (TARIF, *POWER_FIELDS, *GAS_FIELDS, *TOTALS_FIELDS)


def _resolve(projection: Projection) -> tuple[Field, ...]:
    if projection == Projection.ALL:
        return ALL_FIELDS
    fields: list[Field] = []
    if projection & Projection.GAS:
        fields.extend(GAS_FIELDS)
    if projection & Projection.POWER:
        fields.extend(POWER_FIELDS)
    if projection & Projection.TOTALS:
        fields.extend(TOTALS_FIELDS)
    return tuple(fields)


_FIELDS = {Projection(i): _resolve(Projection(i)) for i in range(Projection.GAS | Projection.POWER | Projection.TOTALS)}


def fields_for(projection: Projection | int) -> tuple[Field, ...]:
    """Fields selected by `projection`, Timestamp excluded (it is always present)."""
    return _FIELDS[Projection.from_int(int(projection))]
