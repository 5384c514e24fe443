import argparse
import datetime as dt
import json

from loguru import logger

from src.meterstore.config import settings
from src.meterstore.db.store import SQLStore
from src.meterstore.export import to_csv, to_structured
from src.meterstore.ingest.record import record, replay_dead_letters
from src.meterstore.query.range import readouts_between
from src.meterstore.readout import random_reading


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="meterstore")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init-db", help="Create the readouts table if absent")

    r = sub.add_parser("range", help="Print readouts between two boundaries")
    r.add_argument("--start", default="")
    r.add_argument("--end", default="")
    r.add_argument("--interval", type=int, default=1, help="Averaging interval in seconds")
    r.add_argument("--fields", type=int, default=0, help="1 gas, 2 power, 4 totals; 0 all")
    r.add_argument("--format", choices=("json", "csv"), default="csv")

    s = sub.add_parser("seed", help="Insert random readouts, one second apart, ending now")
    s.add_argument("--count", type=int, default=60)

    sub.add_parser("replay", help="Re-insert dead-lettered readouts")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    store = SQLStore.from_settings(settings)
    try:
        store.ensure_ready()

        if args.cmd == "init-db":
            logger.success("Readout table ready")
            return

        if args.cmd == "range":
            records = readouts_between(store, args.start, args.end, args.interval, args.fields)
            logger.info(f"Found {len(records)} readouts")
            if args.format == "csv":
                print(to_csv(records, args.fields), end="")
            else:
                print(json.dumps(to_structured(records, args.fields), indent=2))
            return

        if args.cmd == "seed":
            now = dt.datetime.now().replace(microsecond=0)
            for i in range(args.count):
                record(store, random_reading(now - dt.timedelta(seconds=args.count - 1 - i)))
            logger.success(f"Inserted {args.count} random readouts")
            return

        if args.cmd == "replay":
            replayed, failed = replay_dead_letters(store)
            logger.success(f"Replayed {replayed} readouts ({failed} still failing)")
    finally:
        store.close()


if __name__ == "__main__":
    main()
