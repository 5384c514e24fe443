"""Collapse a dense readout series into fixed-width averaged buckets.

Pure functions only; safe to call from any thread.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import replace
from typing import NamedTuple, Sequence

from loguru import logger

from src.meterstore.readout import NUMERIC_FIELDS, ZERO_INSTANT, StoredRecord


class Bucket(NamedTuple):
    start: int
    end: int  # inclusive

    @property
    def size(self) -> int:
        return self.end - self.start + 1


def bucket_ranges(records: Sequence[StoredRecord], interval: dt.timedelta) -> list[Bucket]:
    """Partition ascending `records` into runs no wider than `interval`.

    A run closes at the first record `interval` or more after the record that
    opened it. The last record always joins the run that is open when it is
    reached. A run can not be opened by a record with an unparsable timestamp;
    such a record is skipped and appears in no bucket.
    """
    if interval <= dt.timedelta(0):
        raise ValueError(f"interval must be positive, got {interval}")

    buckets: list[Bucket] = []
    last = len(records) - 1
    start = 0
    while start <= last:
        opened = records[start].instant
        if opened == ZERO_INSTANT:
            logger.warning("Skipping readout {} as bucket start: bad timestamp {!r}", start, records[start].timestamp)
            start += 1
            continue

        cursor = start + 1
        while cursor < last and records[cursor].instant - opened < interval:
            cursor += 1
        if cursor >= last:
            # force the final record into the open bucket
            cursor = last + 1

        buckets.append(Bucket(start, cursor - 1))
        start = cursor
    return buckets


def round3(value: float) -> float:
    """Round half away from zero to three decimals."""
    scaled = value * 1000
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / 1000


def average(records: Sequence[StoredRecord]) -> StoredRecord:
    """One record with every numeric field averaged; timestamp and tariff from the first."""
    first = records[0]
    if len(records) == 1:
        return first
    n = len(records)
    means = {
        name: round3(sum(getattr(r, name) for r in records) / n)
        for name in NUMERIC_FIELDS
    }
    return replace(first, **means)


def bucketize(records: Sequence[StoredRecord], interval: dt.timedelta) -> list[StoredRecord]:
    return [average(records[b.start:b.end + 1]) for b in bucket_ranges(records, interval)]
