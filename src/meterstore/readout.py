"""Reading (what the meter reported) and StoredRecord (what a range query returns)."""
from __future__ import annotations

import datetime as dt
import random
from dataclasses import dataclass
from functools import cached_property

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Returned for timestamps that cannot be parsed; sorts before every real reading.
ZERO_INSTANT = dt.datetime.min

NUMERIC_FIELDS = (
    "power_received",
    "power_delivered",
    "gas_received",
    "total_power_delivered_low",
    "total_power_delivered_peak",
    "total_power_received_low",
    "total_power_received_peak",
)


class Reading(BaseModel):
    """One decoded telegram.

    Quantities the decoder could not produce are left at zero; there is no
    separate "missing" value.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: dt.datetime
    tarif: int = 0
    power_received: float = 0.0  # kW
    power_delivered: float = 0.0  # kW
    gas: dict[int, float] = Field(default_factory=dict)  # m3 per M-Bus channel
    total_power_received_low: float = 0.0  # kWh
    total_power_received_peak: float = 0.0
    total_power_delivered_low: float = 0.0
    total_power_delivered_peak: float = 0.0

    def gas_received(self, channel: int) -> float:
        return self.gas.get(channel, 0.0)


def random_reading(now: dt.datetime | None = None) -> Reading:
    """A plausible reading stamped `now`, for seeding a database without a meter."""
    return Reading(
        timestamp=now or dt.datetime.now(),
        tarif=1,
        power_received=random.randint(0, 998) / 1000,
        power_delivered=random.randint(0, 998) / 1000,
        gas={1: 0.003, 2: 417.143},
    )


@dataclass(frozen=True)
class StoredRecord:
    timestamp: str
    tarif: int = 0
    power_received: float = 0.0
    power_delivered: float = 0.0
    gas_received: float = 0.0
    total_power_delivered_low: float = 0.0
    total_power_delivered_peak: float = 0.0
    total_power_received_low: float = 0.0
    total_power_received_peak: float = 0.0

    @cached_property
    def instant(self) -> dt.datetime:
        """`timestamp` parsed back to a datetime, or ZERO_INSTANT if it is malformed."""
        try:
            return dt.datetime.strptime(self.timestamp, TIMESTAMP_FORMAT)
        except (TypeError, ValueError) as e:
            logger.warning("Unparsable stored timestamp {!r}: {}", self.timestamp, e)
            return ZERO_INSTANT
