from __future__ import annotations
import logging, sys
from pathlib import Path
from typing import Optional

from msgcodec.schema import MessageSchema, SchemaRegistry

# exit codes shared by the msgwf-* commands
EXIT_OK = 0
EXIT_DATA_ERROR = 1
EXIT_USAGE_ERROR = 2


def setup_logging(log_file: Optional[Path], verbose: bool = True) -> None:
    log_fmt = "[%(asctime)s] %(levelname)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    level = logging.DEBUG if verbose else logging.INFO
    # stderr: stdout may carry JSON lines
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=log_fmt, datefmt=datefmt, handlers=handlers)


def load_schema(schema_path: str, type_name: str) -> MessageSchema:
    """Load and seal the schema document, then resolve `type_name` (SchemaError / OSError)."""
    registry = SchemaRegistry.load_file(Path(schema_path))
    return registry.message(type_name)
