from __future__ import annotations

import datetime as dt

import pytest
from dateutil import tz

from src.meterstore.db.store import SQLStore
from src.meterstore.readout import StoredRecord, TIMESTAMP_FORMAT

AMSTERDAM = tz.gettz("Europe/Amsterdam")
T0 = dt.datetime(2020, 2, 3, 13, 0, 0)


@pytest.fixture
def store(tmp_path):
    s = SQLStore(f"sqlite:///{tmp_path / 'readouts.db'}", timezone=AMSTERDAM)
    yield s
    s.close()


def stored(seconds: int, **values) -> StoredRecord:
    """A StoredRecord `seconds` after T0."""
    return StoredRecord(timestamp=(T0 + dt.timedelta(seconds=seconds)).strftime(TIMESTAMP_FORMAT), **values)
