from __future__ import annotations

import datetime as dt

import pytest

from src.meterstore.query.range import readouts_between, string_to_time
from src.meterstore.readout import Reading

from conftest import AMSTERDAM, T0

NOW = dt.datetime(2024, 6, 1, 8, 30, 0, tzinfo=AMSTERDAM)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2020-02-03 13:22:33", dt.datetime(2020, 2, 3, 13, 22, 33)),
        ("2020-02-03", dt.datetime(2020, 2, 3, 1, 2, 3)),
        ("13:22:33", dt.datetime(2024, 6, 1, 13, 22, 33)),
        ("", dt.datetime(2024, 6, 1, 1, 2, 3)),
        ("lsbhewr", dt.datetime(2024, 6, 1, 1, 2, 3)),
    ],
)
def test_string_to_time(value: str, expected: dt.datetime) -> None:
    assert string_to_time(value, AMSTERDAM, "01:02:03", now=NOW) == expected.replace(tzinfo=AMSTERDAM)


def test_string_to_time_defaults_to_today() -> None:
    today = dt.datetime.now(AMSTERDAM).date()

    parsed = string_to_time("lsbhewr", AMSTERDAM, "01:02:03")

    assert parsed.date() == today
    assert parsed.time() == dt.time(1, 2, 3)


def test_invalid_calendar_date_falls_back_to_default() -> None:
    assert string_to_time("2020-13-45 10:00:00", AMSTERDAM, "01:02:03", now=NOW) == dt.datetime(
        2024, 6, 1, 1, 2, 3, tzinfo=AMSTERDAM
    )


def test_readouts_between_averages_when_interval_given(store) -> None:
    for i in range(10):
        store.insert(Reading(timestamp=T0 + dt.timedelta(seconds=i), power_received=float(i)))

    raw = readouts_between(store, "2020-02-03 13:00:00", "2020-02-03 13:00:09", timezone=AMSTERDAM)
    averaged = readouts_between(store, "2020-02-03 13:00:00", "2020-02-03 13:00:09", 5, 2, timezone=AMSTERDAM)

    assert len(raw) == 10
    assert [r.power_received for r in averaged] == [2.0, 7.0]
    assert all(r.gas_received == 0.0 for r in averaged)


def test_readouts_between_date_only_covers_whole_day(store) -> None:
    store.insert(Reading(timestamp=dt.datetime(2020, 2, 3, 0, 0, 0)))
    store.insert(Reading(timestamp=dt.datetime(2020, 2, 3, 23, 59, 59)))
    store.insert(Reading(timestamp=dt.datetime(2020, 2, 4, 0, 0, 0)))

    out = readouts_between(store, "2020-02-03", "2020-02-03", timezone=AMSTERDAM)

    assert [r.timestamp for r in out] == ["2020-02-03 00:00:00", "2020-02-03 23:59:59"]
