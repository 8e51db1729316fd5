from __future__ import annotations
import json, logging
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional

from msgcodec.config import CodecConfig, resolve_config
from msgcodec.convert import message_from_value, message_to_value
from msgcodec.errors import CodecError
from msgcodec.framing import iter_records, open_record_file, write_record
from msgcodec.schema import MessageSchema
from msgcodec.value import to_jsonable

logger = logging.getLogger(__name__)


def pack_records(values: Iterable[Any], path: Path | str, schema: MessageSchema, *,
                 append: bool = False, config: Optional[CodecConfig] = None) -> int:
    """Write each plain-JSON object of `values` as one framed record. Returns the count."""
    cfg = resolve_config(config)
    n = 0
    with open_record_file(path, "append" if append else "write", config=cfg) as f:
        for i, value in enumerate(values, 1):
            try:
                write_record(f, message_from_value(schema, value, config=cfg), config=cfg)
            except CodecError as e:
                logger.error("record %d: %s", i, e)
                raise
            n += 1
    return n


def dump_records(path: Path | str, schema: MessageSchema, *,
                 ignore_partial: bool = False, config: Optional[CodecConfig] = None) -> List[Any]:
    """Read every framed record of `path` and return their plain-JSON rendering."""
    cfg = resolve_config(config)
    with open_record_file(path, "read", config=cfg) as f:
        return [to_jsonable(message_to_value(m))
                for m in iter_records(f, schema, ignore_partial=ignore_partial, config=cfg)]


def read_jsonl(path: Path | str) -> Iterator[Any]:
    """One JSON document per non-blank line."""
    with open(path, "r", encoding="utf-8", errors="surrogateescape") as f:
        for line in f:
            if line.strip():
                yield json.loads(line)


def write_jsonl(path: Path | str, rows: Iterable[Any]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", errors="surrogateescape") as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=False, separators=(",", ":")) + "\n")
