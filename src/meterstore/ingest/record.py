"""Write path: insert with retry, dead-letter on exhaustion.

A reading that cannot be stored after the retries is appended to a JSON-lines
file before the error is raised, so nothing is dropped silently.
"""
from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Protocol

from loguru import logger
from pydantic import ValidationError

from src.meterstore.config import settings
from src.meterstore.errors import MeterstoreError, WriteError
from src.meterstore.readout import Reading


class Inserter(Protocol):
    def insert(self, reading: Reading) -> None: ...


def dead_letter(reading: Reading, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("a", encoding="utf-8") as fh:
        fh.write(reading.model_dump_json() + "\n")
    logger.warning("Dead-lettered readout at {} to {}", reading.timestamp, p)


def record(
    store: Inserter,
    reading: Reading,
    retries: int | None = None,
    dead_letter_path: str | Path | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Insert `reading`, retrying with exponential backoff (1s, 2s, 4s, capped at 5s)."""
    attempts = max(1, settings.INSERT_RETRIES if retries is None else retries)
    for attempt in range(1, attempts + 1):
        try:
            store.insert(reading)
            return
        except WriteError as e:
            if attempt < attempts:
                delay = min(2 ** (attempt - 1), 5)
                logger.warning("Insert failed (attempt {}/{}), retrying in {}s: {}", attempt, attempts, delay, e)
                sleep(delay)
                continue
            logger.error("Insert failed after {} attempts: {}", attempts, e)
            try:
                dead_letter(reading, dead_letter_path or settings.DEAD_LETTER_PATH)
            except OSError:
                logger.exception("Could not dead-letter readout at {}", reading.timestamp)
            raise


def replay_dead_letters(store: Inserter, path: str | Path | None = None) -> tuple[int, int]:
    """Re-insert dead-lettered readings. Returns (replayed, kept).

    Lines that do not parse, readings that fail again, and readings not yet
    tried when an unexpected error aborts the replay are written back; replayed
    readings are always removed from the file.
    """
    p = Path(path or settings.DEAD_LETTER_PATH)
    if not p.exists():
        return (0, 0)

    kept: list[str] = []
    pending: list[tuple[str, Reading]] = []
    for line in p.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        try:
            pending.append((line, Reading.model_validate_json(line)))
        except ValidationError as e:
            logger.warning("Keeping malformed dead-letter line {!r}: {}", line, e)
            kept.append(line)

    replayed = 0
    done = 0
    try:
        for line, reading in pending:
            try:
                store.insert(reading)
                replayed += 1
            except MeterstoreError as e:
                logger.warning("Replay of readout at {} failed: {}", reading.timestamp, e)
                kept.append(line)
            done += 1
    finally:
        kept.extend(line for line, _ in pending[done:])
        p.write_text("".join(f"{line}\n" for line in kept), encoding="utf-8")
    logger.info("Replayed {} dead-lettered readouts, {} kept", replayed, len(kept))
    return (replayed, len(kept))
