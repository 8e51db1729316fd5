from __future__ import annotations

"""JSON-equivalent value tree.

A Value is one of Null, Boolean, Number, String, Array, Object. All of them
are frozen; an Object keeps its insertion order. `loads`/`dumps` move between
the tree and JSON text with the standard `json` module.
"""

import enum
import json
from dataclasses import dataclass
from typing import Any, ClassVar, Iterator, Mapping, Tuple, Union

__all__ = [
    "ValueKind", "Value",
    "Null", "Boolean", "Number", "String", "Array", "Object", "NULL",
    "from_python", "to_python", "to_jsonable", "loads", "dumps",
]


class ValueKind(enum.Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True, slots=True)
class Null:
    kind: ClassVar[ValueKind] = ValueKind.NULL


@dataclass(frozen=True, slots=True)
class Boolean:
    value: bool
    kind: ClassVar[ValueKind] = ValueKind.BOOLEAN


@dataclass(frozen=True, slots=True)
class Number:
    # int for integral fields (exact, any width), float otherwise
    value: Union[int, float]
    kind: ClassVar[ValueKind] = ValueKind.NUMBER


@dataclass(frozen=True, slots=True)
class String:
    # str for text, bytes carried verbatim for byte fields
    value: Union[str, bytes]
    kind: ClassVar[ValueKind] = ValueKind.STRING


@dataclass(frozen=True, slots=True)
class Array:
    values: Tuple["Value", ...] = ()
    kind: ClassVar[ValueKind] = ValueKind.ARRAY

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.values)

    def __getitem__(self, index: int) -> "Value":
        return self.values[index]


@dataclass(frozen=True, slots=True)
class Object:
    """Ordered name → Value mapping. Later duplicates replace earlier ones."""

    fields: Tuple[Tuple[str, "Value"], ...] = ()
    kind: ClassVar[ValueKind] = ValueKind.OBJECT

    def __post_init__(self) -> None:
        merged: dict = {}
        for name, value in self.fields:
            merged[str(name)] = value
        object.__setattr__(self, "fields", tuple(merged.items()))

    @staticmethod
    def of(mapping: Mapping[str, "Value"]) -> "Object":
        return Object(tuple(mapping.items()))

    def get(self, name: str, default: Any = None) -> Any:
        for key, value in self.fields:
            if key == name:
                return value
        return default

    def keys(self) -> Tuple[str, ...]:
        return tuple(k for k, _ in self.fields)

    def items(self) -> Tuple[Tuple[str, "Value"], ...]:
        return self.fields

    def __contains__(self, name: object) -> bool:
        return any(k == name for k, _ in self.fields)

    def __getitem__(self, name: str) -> "Value":
        for key, value in self.fields:
            if key == name:
                return value
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())


Value = Union[Null, Boolean, Number, String, Array, Object]

NULL = Null()


# -----------------------------------------------------------------------------
# Plain Python <-> Value
# -----------------------------------------------------------------------------
def from_python(obj: Any) -> Value:
    """Build a Value tree from dict/list/str/bytes/int/float/bool/None."""
    if isinstance(obj, (Null, Boolean, Number, String, Array, Object)):
        return obj
    if obj is None:
        return NULL
    if isinstance(obj, bool):  # before int: bool is an int subclass
        return Boolean(obj)
    if isinstance(obj, (int, float)):
        return Number(obj)
    if isinstance(obj, (str, bytes)):
        return String(obj)
    if isinstance(obj, bytearray):
        return String(bytes(obj))
    if isinstance(obj, Mapping):
        return Object(tuple((str(k), from_python(v)) for k, v in obj.items()))
    if isinstance(obj, (list, tuple)):
        return Array(tuple(from_python(v) for v in obj))
    raise TypeError(f"from_python: unsupported type {type(obj).__name__}")


def to_python(value: Value) -> Any:
    """Inverse of `from_python` (Object → dict, Array → list)."""
    if isinstance(value, Null):
        return None
    if isinstance(value, (Boolean, Number, String)):
        return value.value
    if isinstance(value, Array):
        return [to_python(v) for v in value.values]
    if isinstance(value, Object):
        return {k: to_python(v) for k, v in value.fields}
    raise TypeError(f"to_python: not a Value ({type(value).__name__})")


# -----------------------------------------------------------------------------
# JSON text
# -----------------------------------------------------------------------------
def _jsonable(obj: Any) -> Any:
    # bytes become surrogate-escaped text so that arbitrary bytes survive
    # dumps → loads → (BYTES field) encode("utf-8", "surrogateescape")
    if isinstance(obj, bytes):
        return obj.decode("utf-8", "surrogateescape")
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_jsonable(v) for v in obj]
    return obj


def to_jsonable(value: Value) -> Any:
    """Like `to_python`, with bytes rendered as (surrogate-escaped) text."""
    return _jsonable(to_python(value))


def dumps(value: Value, *, indent: int | None = None) -> str:
    """Value → JSON text (compact unless `indent` is given)."""
    separators = (",", ":") if indent is None else None
    return json.dumps(to_jsonable(value), ensure_ascii=False,
                      indent=indent, separators=separators)


def loads(text: str | bytes) -> Value:
    """JSON text → Value. Raises `json.JSONDecodeError` (a ValueError) on bad input."""
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    return from_python(json.loads(text))
