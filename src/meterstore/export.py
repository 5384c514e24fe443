"""Output shapes for range query results."""
from __future__ import annotations

import csv
import io
from typing import Any, Iterable

from src.meterstore.projection import Projection, fields_for
from src.meterstore.readout import StoredRecord


def to_structured(records: Iterable[StoredRecord], projection: Projection | int = Projection.ALL) -> list[dict[str, Any]]:
    """One dict per record: Timestamp plus the projected fields only."""
    fields = fields_for(projection)
    out = []
    for r in records:
        o: dict[str, Any] = {"Timestamp": r.timestamp}
        for f in fields:
            o[f.label] = getattr(r, f.attr)
        out.append(o)
    return out


def to_csv(records: Iterable[StoredRecord], projection: Projection | int = Projection.ALL) -> str:
    """Header naming the projected columns, then one line per record (3 decimals)."""
    fields = fields_for(projection)
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(["Timestamp", *(f.label for f in fields)])
    for r in records:
        row: list[Any] = [r.timestamp]
        for f in fields:
            v = getattr(r, f.attr)
            row.append(v if f.attr == "tarif" else f"{v:.3f}")
        w.writerow(row)
    return buf.getvalue()
