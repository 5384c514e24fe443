from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse
from loguru import logger

from src.meterstore.config import settings
from src.meterstore.db.store import SQLStore
from src.meterstore.errors import QueryError, WriteError
from src.meterstore.export import to_csv, to_structured
from src.meterstore.ingest.record import record
from src.meterstore.projection import Projection
from src.meterstore.query.range import readouts_between
from src.meterstore.readout import TIMESTAMP_FORMAT, Reading

store = SQLStore.from_settings(settings)


def get_store() -> SQLStore:
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    # an unreachable database aborts startup (InitializationError)
    store.ensure_ready()
    yield
    store.close()
    logger.info("Readout store closed")


app = FastAPI(title="Smart Meter Readout Store", version="0.2.0", lifespan=lifespan)


@app.get("/healthz", summary="Healthz")
def healthz():
    return {"status": "ok"}


@app.get("/db/healthz", summary="Readout store connectivity")
def db_healthz(s: SQLStore = Depends(get_store)):
    ok, msg = s.ping()
    return {"ok": ok, "status": msg}


# -----------------------
# routes
# -----------------------
@app.post("/readouts", status_code=201, summary="Store one decoded readout")
def insert_readout(reading: Reading, s: SQLStore = Depends(get_store)):
    try:
        record(s, reading)
    except WriteError as e:
        raise HTTPException(status_code=503, detail=f"readout not stored (dead-lettered): {e}")
    return {"stored": s.wall_clock(reading.timestamp).strftime(TIMESTAMP_FORMAT)}


@app.get("/readouts", summary="Readouts in a time range, optionally averaged")
def get_readouts(
    start: str = "",
    end: str = "",
    interval: int = Query(1, ge=1, description="Averaging interval in seconds; 1 returns raw readouts"),
    fields: int = Query(0, description="Bitmask: 1 gas, 2 power, 4 totals; 0 is everything"),
    format: str = Query("json", pattern="^(json|csv)$"),
    s: SQLStore = Depends(get_store),
):
    projection = Projection.from_int(fields)
    try:
        records = readouts_between(s, start, end, interval, projection)
    except QueryError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if format == "csv":
        return PlainTextResponse(to_csv(records, projection), media_type="text/csv")
    return to_structured(records, projection)
