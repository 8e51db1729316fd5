# packages/msgcodec/src/msgcodec/errors.py
from __future__ import annotations

"""Exceptions raised by msgcodec.

The "no more records" outcome of the framed codec is *not* an exception:
`read_record` returns None for it.
"""

from typing import Any, Iterable, Optional, Sequence

__all__ = [
    "CodecError",
    "SchemaError", "UnsupportedFieldKindError",
    "EnumLookupError",
    "ConversionError", "NotAnObjectError", "TypeMismatchError",
    "UnknownEnumNameError", "UnknownEnumCodeError", "NumericRangeError",
    "MissingRequiredFieldsError",
    "UninitializedError", "RecordTooLargeError",
    "StreamIOError", "CorruptionError", "DeserializationError",
]


class CodecError(Exception):
    """Base class of every msgcodec error."""


# -----------------------------------------------------------------------------
# Schema / configuration defects
# -----------------------------------------------------------------------------
class SchemaError(CodecError, ValueError):
    """The schema itself is invalid (dangling reference, cycle, duplicate...)."""


class UnsupportedFieldKindError(SchemaError):
    def __init__(self, field: str, kind: Any) -> None:
        self.field = field
        self.kind = kind
        super().__init__(f"Unhandled field kind {_kind_name(kind)} for field '{field}'")


class EnumLookupError(CodecError, KeyError):
    def __init__(self, enum: str, key: Any) -> None:
        self.enum = enum
        self.key = key
        super().__init__(f"enum '{enum}' has no member {key!r}")

    def __str__(self) -> str:  # KeyError quotes its argument otherwise
        return self.args[0]


# -----------------------------------------------------------------------------
# Message <-> Value conversion
# -----------------------------------------------------------------------------
class ConversionError(CodecError, ValueError):
    """A value tree could not be mapped onto (or out of) a message."""


class NotAnObjectError(ConversionError):
    def __init__(self, value_kind: Any) -> None:
        self.value_kind = value_kind
        super().__init__(f"Expecting a JSON object, got {_kind_name(value_kind)}")


class TypeMismatchError(ConversionError):
    def __init__(self, field: str, value_kind: Any, field_kind: Any) -> None:
        self.field = field
        self.value_kind = value_kind
        self.field_kind = field_kind
        super().__init__(
            f"Not expecting a JSON {_kind_name(value_kind)} for field '{field}' "
            f"of kind {_kind_name(field_kind)}"
        )


class UnknownEnumNameError(ConversionError):
    def __init__(self, field: str, symbol: Any) -> None:
        self.field = field
        self.symbol = symbol
        super().__init__(f"Failed to find enum for '{symbol}' (field '{field}')")


class UnknownEnumCodeError(ConversionError):
    def __init__(self, field: str, code: int) -> None:
        self.field = field
        self.code = code
        super().__init__(f"Enum field '{field}' holds code {code} which has no symbolic name")


class NumericRangeError(ConversionError):
    def __init__(self, field: str, value: Any, kind: Any) -> None:
        self.field = field
        self.value = value
        self.kind = kind
        super().__init__(f"Number {value!r} does not fit field '{field}' of kind {_kind_name(kind)}")


class MissingRequiredFieldsError(ConversionError):
    def __init__(self, paths: Iterable[str]) -> None:
        self.paths = list(paths)
        super().__init__("Missing required fields: " + ", ".join(self.paths))


# -----------------------------------------------------------------------------
# Framed record codec
# -----------------------------------------------------------------------------
class UninitializedError(CodecError):
    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = list(paths)
        super().__init__(", ".join(self.paths) + " is required but not initialized")


class RecordTooLargeError(CodecError):
    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"Serialized record of {size} bytes does not fit a 32-bit length prefix")


class StreamIOError(CodecError):
    """An open/read/write/seek on the underlying byte stream failed."""

    def __init__(self, operation: str, message: str, path: Optional[str] = None) -> None:
        self.operation = operation
        self.path = path
        super().__init__(message)


class CorruptionError(CodecError):
    """A frame is shorter than its declared length (or its length is absurd)."""


class DeserializationError(CodecError):
    """The payload bytes do not parse into the target schema."""


def _kind_name(kind: Any) -> str:
    return str(getattr(kind, "value", kind))
