"""SQL-backed readout store.

The store owns one engine, created on first use. Inserts and range scans each
run in their own short-lived session; the backend's own concurrency control
decides what a query sees of a concurrent insert.
"""
from __future__ import annotations

import datetime as dt
import threading
from typing import Callable

from dateutil import tz
from loguru import logger
from sqlalchemy import select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from src.meterstore.config import Settings, settings as default_settings
from src.meterstore.db.models import Readout
from src.meterstore.db.session import Base, make_engine, make_sessionmaker
from src.meterstore.errors import InitializationError, QueryError, WriteError
from src.meterstore.projection import Field, Projection, fields_for
from src.meterstore.query.bucketize import bucketize
from src.meterstore.readout import TIMESTAMP_FORMAT, Reading, StoredRecord

# Finest resolution the meter reports at; averaging at this interval is a no-op.
RESOLUTION = dt.timedelta(seconds=1)


class KeepAlive:
    """Pings the backend every `every` seconds on a daemon thread until stopped."""

    def __init__(self, ping: Callable[[], tuple[bool, str]], every: float):
        self._ping = ping
        self._every = every
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="readout-store-keepalive", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.wait(self._every):
            ok, msg = self._ping()
            if not ok:
                logger.warning("Readout store keep-alive ping failed: {}", msg)

    def stop(self) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


class SQLStore:
    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        gas_channel: int = 2,
        timezone: dt.tzinfo | None = None,
        keepalive_seconds: float = 30.0,
    ):
        self.url = url
        self.echo = echo
        self.gas_channel = gas_channel
        self.timezone = timezone or tz.tzlocal()
        self.keepalive_seconds = keepalive_seconds
        self._lock = threading.Lock()
        self._engine: Engine | None = None
        self._sessions = None
        self._keepalive: KeepAlive | None = None

    @classmethod
    def from_settings(cls, s: Settings = default_settings) -> "SQLStore":
        return cls(
            s.DATABASE_URL,
            echo=s.DB_ECHO,
            gas_channel=s.GAS_CHANNEL,
            timezone=tz.gettz(s.TIMEZONE),
            keepalive_seconds=s.KEEPALIVE_SECONDS,
        )

    # -----------------------
    # lifecycle
    # -----------------------
    @property
    def ready(self) -> bool:
        return self._sessions is not None

    def ensure_ready(self) -> None:
        """Open the engine and provision the schema, exactly once."""
        if self._sessions is not None:
            return
        with self._lock:
            if self._sessions is not None:
                return
            try:
                engine = make_engine(self.url, echo=self.echo)
                Base.metadata.create_all(bind=engine)
            except (SQLAlchemyError, ImportError) as e:
                logger.exception("Could not initialize readout store")
                raise InitializationError(f"cannot initialize readout store: {e}") from e

            self._engine = engine
            self._keepalive = KeepAlive(self.ping, self.keepalive_seconds)
            self._keepalive.start()
            self._sessions = make_sessionmaker(engine)
            logger.info("Readout store ready on {}", engine.url.render_as_string(hide_password=True))

    def ping(self) -> tuple[bool, str]:
        if self._engine is None:
            return (False, "not initialized")
        try:
            with self._engine.connect() as c:
                c.execute(text("select 1"))
            return (True, "ok")
        except Exception as e:
            return (False, str(e))

    def close(self) -> None:
        with self._lock:
            if self._keepalive is not None:
                self._keepalive.stop()
                self._keepalive = None
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
            self._sessions = None

    # -----------------------
    # helpers
    # -----------------------
    def wall_clock(self, ts: dt.datetime) -> dt.datetime:
        """Naive wall-clock time in the store's timezone, truncated to whole seconds."""
        if ts.tzinfo is not None:
            ts = ts.astimezone(self.timezone).replace(tzinfo=None)
        return ts.replace(microsecond=0)

    @staticmethod
    def _to_record(row, fields: tuple[Field, ...]) -> StoredRecord:
        ts = row["timestamp"]
        values = {
            f.attr: row[f.attr] if row[f.attr] is not None else (0 if f.attr == "tarif" else 0.0)
            for f in fields
        }
        return StoredRecord(
            timestamp=ts.strftime(TIMESTAMP_FORMAT) if isinstance(ts, dt.datetime) else str(ts),
            **values,
        )

    # -----------------------
    # operations
    # -----------------------
    def insert(self, reading: Reading) -> None:
        self.ensure_ready()
        ts = self.wall_clock(reading.timestamp)
        row = Readout(
            timestamp=ts,
            date=ts.date(),
            time=ts.time(),
            tarif=reading.tarif,
            power_received=reading.power_received,
            power_delivered=reading.power_delivered,
            gas_received=reading.gas_received(self.gas_channel),
            total_power_received_low=reading.total_power_received_low,
            total_power_received_peak=reading.total_power_received_peak,
            total_power_delivered_low=reading.total_power_delivered_low,
            total_power_delivered_peak=reading.total_power_delivered_peak,
        )
        try:
            with self._sessions() as s:
                s.add(row)
                s.commit()
        except SQLAlchemyError as e:
            logger.exception("Insert of readout at {} failed", ts)
            raise WriteError(f"insert of readout at {ts} failed: {e}", reading) from e

    def get_range(
        self, start: dt.datetime, end: dt.datetime, projection: Projection | int = Projection.ALL
    ) -> list[StoredRecord]:
        """Readouts with `start <= timestamp <= end`, oldest first."""
        self.ensure_ready()
        fields = fields_for(projection)
        q = (
            select(Readout.timestamp, *(getattr(Readout, f.attr) for f in fields))
            .where(Readout.timestamp >= self.wall_clock(start))
            .where(Readout.timestamp <= self.wall_clock(end))
            .order_by(Readout.timestamp, Readout.id)
        )
        try:
            with self._sessions() as s:
                rows = s.execute(q).mappings().all()
        except SQLAlchemyError as e:
            logger.exception("Range query {} .. {} failed", start, end)
            raise QueryError(f"range query {start} .. {end} failed: {e}") from e
        return [self._to_record(row, fields) for row in rows]

    def get_averaged_range(
        self,
        start: dt.datetime,
        end: dt.datetime,
        interval: dt.timedelta,
        projection: Projection | int = Projection.ALL,
    ) -> list[StoredRecord]:
        """`get_range` averaged over buckets of `interval`.

        An interval of exactly the native one-second resolution returns the raw
        range; non-positive intervals are rejected.
        """
        if interval <= dt.timedelta(0):
            raise ValueError(f"interval must be positive, got {interval}")
        records = self.get_range(start, end, projection)
        if interval == RESOLUTION:
            return records
        return bucketize(records, interval)
