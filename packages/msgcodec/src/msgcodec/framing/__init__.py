# packages/msgcodec/src/msgcodec/framing/__init__.py
from __future__ import annotations

# Framed records on a byte stream
from .stream import PREFIX_SIZE, write_record, read_record, iter_records

# Path helpers (open, one operation, close)
from .files import open_record_file, write_path, append_path, read_path

__all__ = [
    "PREFIX_SIZE", "write_record", "read_record", "iter_records",
    "open_record_file", "write_path", "append_path", "read_path",
]
