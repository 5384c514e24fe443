"""Range queries from free-form boundaries ("2020-02-03", "13:22:33", ...)."""
from __future__ import annotations

import datetime as dt
import re
from typing import TYPE_CHECKING

from dateutil import tz
from loguru import logger

from src.meterstore.config import settings
from src.meterstore.projection import Projection
from src.meterstore.readout import TIMESTAMP_FORMAT, StoredRecord

if TYPE_CHECKING:
    from src.meterstore.db.store import SQLStore

_DATE_TIME = re.compile(r"(\d{4}-\d{2}-\d{2})? ?(\d{2}:\d{2}:\d{2})?")


def string_to_time(
    value: str,
    timezone: dt.tzinfo,
    default_time: str,
    now: dt.datetime | None = None,
) -> dt.datetime:
    """
    Parse a range boundary. A missing date means today, a missing time means
    `default_time`; input that matches neither falls back to today at
    `default_time`.
    """
    today = (now or dt.datetime.now(timezone)).strftime("%Y-%m-%d")
    m = _DATE_TIME.search(value or "")
    date_part, time_part = (m.group(1), m.group(2)) if m else (None, None)

    candidate = f"{date_part or today} {time_part or default_time}"
    try:
        parsed = dt.datetime.strptime(candidate, TIMESTAMP_FORMAT)
    except ValueError:
        logger.warning("Unparsable range boundary {!r}; using today at {}", value, default_time)
        parsed = dt.datetime.strptime(f"{today} {default_time}", TIMESTAMP_FORMAT)
    return parsed.replace(tzinfo=timezone)


def readouts_between(
    store: "SQLStore",
    start: str,
    end: str,
    interval_seconds: int = 1,
    fields: int = Projection.ALL,
    timezone: dt.tzinfo | None = None,
) -> list[StoredRecord]:
    """Readouts between two free-form boundaries, averaged over `interval_seconds`."""
    zone = timezone or tz.gettz(settings.TIMEZONE)
    t1 = string_to_time(start, zone, settings.DEFAULT_START_TIME)
    t2 = string_to_time(end, zone, settings.DEFAULT_END_TIME)
    projection = Projection.from_int(fields)
    logger.debug("readouts_between {} .. {} interval={}s projection={!r}", t1, t2, interval_seconds, projection)

    if interval_seconds <= 1:
        return store.get_range(t1, t2, projection)
    return store.get_averaged_range(t1, t2, dt.timedelta(seconds=interval_seconds), projection)
