from __future__ import annotations
import argparse, json, logging, sys
from pathlib import Path

from msgcodec.errors import CodecError, SchemaError

from .common import EXIT_DATA_ERROR, EXIT_OK, EXIT_USAGE_ERROR, load_schema, setup_logging
from ..api import dump_records, write_jsonl


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="msgwf - dump framed record files as JSON lines")
    p.add_argument("files", nargs="+", help="Framed record files")
    p.add_argument("--schema", required=True, help="Schema document (JSON)")
    p.add_argument("--type", required=True, help="Message type of every record")
    p.add_argument("--out", default=None, help="JSON lines output (default: stdout)")
    p.add_argument("--ignore-partial", action="store_true",
                   help="Treat a truncated trailing record as the end of the file")
    p.add_argument("--log-file", default=None)
    p.add_argument("--verbose", action="store_true")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(Path(args.log_file) if args.log_file else None, verbose=args.verbose)

    try:
        schema = load_schema(args.schema, args.type)
    except (SchemaError, OSError) as e:
        logging.error("Schema %s: %s", args.schema, e)
        return EXIT_USAGE_ERROR

    rows = []
    ok = 0
    for i, p in enumerate(args.files, 1):
        try:
            logging.info("[%d/%d] dump: %s", i, len(args.files), p)
            recs = dump_records(p, schema, ignore_partial=args.ignore_partial)
            rows.extend(recs)
            logging.info("-> OK %d record(s)", len(recs))
            ok += 1
        except CodecError as e:
            logging.error("Failed to dump %s: %s", p, e)

    if args.out:
        write_jsonl(args.out, rows)
    else:
        for row in rows:
            sys.stdout.write(json.dumps(row, separators=(",", ":")) + "\n")
        sys.stdout.flush()
    return EXIT_OK if ok == len(args.files) else EXIT_DATA_ERROR


if __name__ == "__main__":
    sys.exit(main())
