# packages/msgcodec/src/msgcodec/framing/files.py
from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from ..config import CodecConfig, resolve_config
from ..errors import StreamIOError
from ..schema import Message, MessageSchema
from .stream import read_record, write_record

__all__ = ["open_record_file", "write_path", "append_path", "read_path"]

logger = logging.getLogger(__name__)

_CLOEXEC = getattr(os, "O_CLOEXEC", 0)

_MODES = {
    "write": (os.O_WRONLY | os.O_CREAT | os.O_TRUNC, "wb"),
    "append": (os.O_WRONLY | os.O_CREAT | os.O_APPEND, "ab"),
    "read": (os.O_RDONLY, "rb"),
}


@contextmanager
def open_record_file(path: Union[str, Path], mode: str, *,
                     config: Optional[CodecConfig] = None) -> Iterator[BinaryIO]:
    """
    Open `path` for one of "write" (truncate), "append" or "read" and always
    close it on exit. An open failure is a StreamIOError naming the path; a
    close failure is logged and never replaces the outcome of the block.
    """
    cfg = resolve_config(config)
    if mode not in _MODES:
        raise ValueError(f"unknown mode {mode!r}, expected one of {sorted(_MODES)}")
    flags, fmode = _MODES[mode]
    p = os.fspath(path)
    try:
        fd = os.open(p, flags | _CLOEXEC, cfg.file_mode)
    except OSError as e:
        raise StreamIOError("open", f"Failed to open '{p}': {e}", path=p) from e
    try:
        # unbuffered: a failed write surfaces in the data operation, not in close()
        f = os.fdopen(fd, fmode, buffering=0)
    except OSError as e:
        os.close(fd)
        raise StreamIOError("open", f"Failed to open '{p}': {e}", path=p) from e
    try:
        yield f
    finally:
        try:
            f.close()
        except OSError as e:
            logger.debug("ignoring close failure on '%s': %s", p, e)


def write_path(path: Union[str, Path], message: Message, *,
               config: Optional[CodecConfig] = None) -> int:
    """Truncate (or create) `path` and write one record."""
    cfg = resolve_config(config)
    with open_record_file(path, "write", config=cfg) as f:
        return write_record(f, message, config=cfg)


def append_path(path: Union[str, Path], message: Message, *,
                config: Optional[CodecConfig] = None) -> int:
    """Append one record to `path`, creating it if needed."""
    cfg = resolve_config(config)
    with open_record_file(path, "append", config=cfg) as f:
        return write_record(f, message, config=cfg)


def read_path(path: Union[str, Path], schema: MessageSchema, *,
              ignore_partial: bool = False,
              config: Optional[CodecConfig] = None) -> Optional[Message]:
    """Read the first record of `path` (None if the file holds none)."""
    cfg = resolve_config(config)
    with open_record_file(path, "read", config=cfg) as f:
        return read_record(f, schema, ignore_partial=ignore_partial, config=cfg)
