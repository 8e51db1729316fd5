from __future__ import annotations
import argparse, logging, sys
from pathlib import Path

from msgcodec.errors import CodecError, SchemaError

from .common import EXIT_DATA_ERROR, EXIT_OK, EXIT_USAGE_ERROR, load_schema, setup_logging
from ..api import pack_records, read_jsonl


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="msgwf - pack JSON lines into a framed record file")
    p.add_argument("--schema", required=True, help="Schema document (JSON)")
    p.add_argument("--type", required=True, help="Message type of every record")
    p.add_argument("--input", required=True, help="JSON lines, one object per record")
    p.add_argument("--out", required=True, help="Framed record file")
    p.add_argument("--append", action="store_true", help="Append to --out instead of truncating it")
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

    try:
        rows = list(read_jsonl(args.input))
    except OSError as e:
        logging.error("Input %s: %s", args.input, e)
        return EXIT_USAGE_ERROR
    except ValueError as e:
        logging.error("Input %s is not valid JSON lines: %s", args.input, e)
        return EXIT_DATA_ERROR

    try:
        n = pack_records(rows, args.out, schema, append=args.append)
    except CodecError as e:
        logging.error("Failed to pack %s: %s", args.input, e)
        return EXIT_DATA_ERROR

    logging.info("Packed %d record(s) of %s into %s", n, args.type, args.out)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
