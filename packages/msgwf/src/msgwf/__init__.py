# packages/msgwf/src/msgwf/__init__.py
from __future__ import annotations

from .api import pack_records, dump_records, read_jsonl, write_jsonl

__all__ = [
    "pack_records",
    "dump_records",
    "read_jsonl",
    "write_jsonl",
    # cli is not imported here: entry points load it on demand
]

__version__ = "1.0.0"
