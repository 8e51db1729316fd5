# packages/msgcodec/src/msgcodec/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

__all__ = ["CodecConfig", "resolve_config"]

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class CodecConfig:
    """
    Public, stable configuration of the msgcodec record codec.

    Consumed by `msgcodec.convert` (numeric narrowing policy) and by
    `msgcodec.framing` (length prefix layout, file permissions, sanity bound).

    Fields
    ------
    byte_order : str, default="little"
        Byte order of the u32 length prefix, "little" or "big". Fixed per
        stream: a file written little-endian must be read little-endian.
    strict_numbers : bool, default=False
        When False, numbers are narrowed to the field representation the way a
        native cast would (float32 rounding, integer truncation + wrap).
        When True, a magnitude that does not fit raises `NumericRangeError`.
    file_mode : int, default=0o644
        Permission bits used by the path helpers when they create a file.
    max_record_size : int | None, default=None
        Upper bound on a length prefix accepted by `read_record`. None means
        no bound: a damaged prefix then simply shows up as a truncated payload.

    ENV keys
    --------
    MSGCODEC_BYTE_ORDER        → byte_order
    MSGCODEC_STRICT_NUMBERS    → strict_numbers (1/true/yes/on)
    MSGCODEC_FILE_MODE         → file_mode (octal, e.g. "600")
    MSGCODEC_MAX_RECORD_SIZE   → max_record_size (bytes)

    Notes
    -----
    The dataclass is immutable; validations raise `ValueError`.
    """

    byte_order: str = "little"
    strict_numbers: bool = False
    file_mode: int = 0o644
    max_record_size: Optional[int] = None

    def __post_init__(self) -> None:
        if self.byte_order not in ("little", "big"):
            raise ValueError("CodecConfig.byte_order must be 'little' or 'big'")
        if not (0 <= int(self.file_mode) <= 0o7777):
            raise ValueError("CodecConfig.file_mode must be a permission mask in [0..0o7777]")
        if self.max_record_size is not None and not (0 <= int(self.max_record_size) <= 0xFFFFFFFF):
            raise ValueError("CodecConfig.max_record_size must be in [0..2^32-1] or None")

    @property
    def prefix_format(self) -> str:
        """struct format of the length prefix."""
        return ("<" if self.byte_order == "little" else ">") + "I"

    @staticmethod
    def from_env() -> "CodecConfig":
        kw = {}
        v = os.getenv("MSGCODEC_BYTE_ORDER")
        if v:
            kw["byte_order"] = v.strip().lower()
        v = os.getenv("MSGCODEC_STRICT_NUMBERS")
        if v:
            kw["strict_numbers"] = v.strip().lower() in _TRUE
        v = os.getenv("MSGCODEC_FILE_MODE")
        if v:
            kw["file_mode"] = int(v.strip(), 8)
        v = os.getenv("MSGCODEC_MAX_RECORD_SIZE")
        if v:
            kw["max_record_size"] = int(v.strip())
        return CodecConfig(**kw)


def resolve_config(config: Optional[CodecConfig]) -> CodecConfig:
    """Explicit config wins; otherwise read the ENV at call time."""
    return config if config is not None else CodecConfig.from_env()
