# packages/msgcodec/src/msgcodec/framing/stream.py
from __future__ import annotations

import logging
import struct
from typing import BinaryIO, Iterator, Optional

from ..config import CodecConfig, resolve_config
from ..errors import (
    CorruptionError, DeserializationError, RecordTooLargeError,
    SchemaError, StreamIOError, UninitializedError,
)
from ..schema import Message, MessageSchema
from ..wire import parse, serialize

__all__ = ["PREFIX_SIZE", "write_record", "read_record", "iter_records"]

logger = logging.getLogger(__name__)

PREFIX_SIZE = 4
_U32_MAX = 0xFFFFFFFF


def _stream_name(stream: BinaryIO) -> Optional[str]:
    name = getattr(stream, "name", None)
    return name if isinstance(name, str) else None


def _io_error(stream: BinaryIO, operation: str, exc: OSError) -> StreamIOError:
    path = _stream_name(stream)
    where = f" '{path}'" if path else ""
    return StreamIOError(operation, f"Failed to {operation}{where}: {exc}", path=path)


def _read_exactly(stream: BinaryIO, n: int) -> bytes:
    """Up to `n` bytes; fewer only when the stream hits EOF first."""
    chunks = []
    remaining = n
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _write_all(stream: BinaryIO, data: bytes) -> None:
    view = memoryview(data)
    while view:
        n = stream.write(view)
        if n is None:  # buffered writers may return None once everything is queued
            return
        view = view[n:]


# -----------------------------------------------------------------------------
# Write
# -----------------------------------------------------------------------------
def write_record(stream: BinaryIO, message: Message, *, config: Optional[CodecConfig] = None) -> int:
    """
    Append one frame `[u32 length][payload]` at the stream cursor.

    Raises UninitializedError (nothing written) if required fields are unset,
    RecordTooLargeError if the payload does not fit the prefix, StreamIOError
    on a failed write. Bytes written before a failure stay on the stream.
    Returns the number of bytes written (prefix included).
    """
    cfg = resolve_config(config)
    missing = message.missing_fields()
    if missing:
        raise UninitializedError(missing)
    payload = serialize(message)
    if len(payload) > _U32_MAX:
        raise RecordTooLargeError(len(payload))
    try:
        _write_all(stream, struct.pack(cfg.prefix_format, len(payload)))
        _write_all(stream, payload)
    except OSError as e:
        raise _io_error(stream, "write", e) from e
    return PREFIX_SIZE + len(payload)


# -----------------------------------------------------------------------------
# Read
# -----------------------------------------------------------------------------
def read_record(stream: BinaryIO, schema: MessageSchema, *,
                ignore_partial: bool = False, undo_failed: bool = False,
                config: Optional[CodecConfig] = None) -> Optional[Message]:
    """
    Read the frame at the stream cursor.

    Returns the record, or None when there are no more records: a clean EOF,
    or a truncated frame while `ignore_partial` is set. A truncated frame is
    otherwise a CorruptionError. When `undo_failed` is set every failure path
    (truncation included, ignored or not) seeks back to where the read began;
    a successful read always leaves the cursor past the frame.
    """
    cfg = resolve_config(config)
    start: Optional[int] = None
    if undo_failed:
        try:
            start = stream.tell()
        except OSError as e:
            raise _io_error(stream, "tell", e) from e

    def restore() -> None:
        if start is None:
            return
        try:
            stream.seek(start)
        except OSError as e:
            logger.warning("could not restore stream position to %d: %s", start, e)

    try:
        prefix = _read_exactly(stream, PREFIX_SIZE)
    except OSError as e:
        restore()
        raise _io_error(stream, "read", e) from e
    if not prefix:
        return None
    if len(prefix) < PREFIX_SIZE:
        restore()
        if ignore_partial:
            logger.debug("ignoring truncated length prefix (%d bytes)", len(prefix))
            return None
        raise CorruptionError("Failed to read size: hit EOF unexpectedly, possible corruption")

    (size,) = struct.unpack(cfg.prefix_format, prefix)
    if cfg.max_record_size is not None and size > cfg.max_record_size:
        restore()
        raise CorruptionError(
            f"Record size {size} exceeds the configured maximum of {cfg.max_record_size} bytes"
        )

    try:
        payload = _read_exactly(stream, size)
    except OSError as e:
        restore()
        raise _io_error(stream, "read", e) from e
    if len(payload) < size:
        restore()
        if ignore_partial:
            logger.debug("ignoring truncated payload (%d of %d bytes)", len(payload), size)
            return None
        raise CorruptionError(
            f"Failed to read message of size {size} bytes: hit EOF unexpectedly, possible corruption"
        )

    try:
        message = parse(schema, payload)
    except SchemaError:
        restore()
        raise
    except (ValueError, TypeError) as e:
        restore()
        raise DeserializationError("Failed to deserialize message") from e
    missing = message.missing_fields()
    if missing:
        restore()
        raise DeserializationError("Failed to deserialize message: missing " + ", ".join(missing))
    return message


def iter_records(stream: BinaryIO, schema: MessageSchema, *,
                 ignore_partial: bool = False,
                 config: Optional[CodecConfig] = None) -> Iterator[Message]:
    """Yield records until there are no more; errors propagate as in `read_record`."""
    cfg = resolve_config(config)
    while True:
        message = read_record(stream, schema, ignore_partial=ignore_partial, config=cfg)
        if message is None:
            return
        yield message
