from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple

import numpy as np

from ..errors import SchemaError, UnknownEnumNameError
from .descriptors import (
    INT32_KINDS, INT64_KINDS, UINT32_KINDS, UINT64_KINDS,
    FieldDescriptor, Kind, MessageSchema,
)

__all__ = ["Message", "integral_bounds", "to_float32"]

_BOUNDS = {}
for _kinds, _dtype in ((INT32_KINDS, np.int32), (INT64_KINDS, np.int64),
                       (UINT32_KINDS, np.uint32), (UINT64_KINDS, np.uint64)):
    _info = np.iinfo(_dtype)
    for _k in _kinds:
        _BOUNDS[_k] = (int(_info.min), int(_info.max))


def integral_bounds(kind: Kind) -> Tuple[int, int]:
    """(min, max) of the integer representation behind `kind`."""
    return _BOUNDS[kind]


def to_float32(x: float) -> float:
    """Round a Python float to float32 precision (overflow → ±inf)."""
    with np.errstate(over="ignore"):
        return float(np.float32(x))


class Message:
    """
    A record bound to a `MessageSchema`.

    Singular fields are "set" once assigned; repeated fields are lists that
    keep insertion order. Reading an unset singular field yields its default,
    or the zero value of its kind.

        person = Message(registry.message("Person"), name="Alice")
        person.get("age")            # default, although never set
        person.add("tags", "x")
    """

    __slots__ = ("schema", "_values")

    def __init__(self, schema: MessageSchema, **initial: Any) -> None:
        if not schema.registry.sealed:
            raise SchemaError(f"schema '{schema.name}' belongs to an unsealed registry; call seal() first")
        self.schema = schema
        self._values: Dict[str, Any] = {}
        for name, value in initial.items():
            if self.schema.field(name).is_repeated:
                self.extend(name, value)
            else:
                self.set(name, value)

    # ---------------------------------------------------------------- presence
    def has(self, name: str) -> bool:
        fd = self.schema.field(name)
        if fd.is_repeated:
            return bool(self._values.get(name))
        return name in self._values

    def count(self, name: str) -> int:
        fd = self.schema.field(name)
        if not fd.is_repeated:
            raise TypeError(f"count(): field '{name}' is not repeated")
        return len(self._values.get(name, ()))

    # -------------------------------------------------------------- singular
    def get(self, name: str) -> Any:
        fd = self.schema.field(name)
        if fd.is_repeated:
            return tuple(self._values.get(name, ()))
        if name in self._values:
            return self._values[name]
        return self._default_of(fd)

    def set(self, name: str, value: Any) -> None:
        fd = self.schema.field(name)
        if fd.is_repeated:
            raise TypeError(f"set(): field '{name}' is repeated, use add()/extend()")
        self._values[name] = self._check(fd, value)

    def clear(self, name: str) -> None:
        self.schema.field(name)
        self._values.pop(name, None)

    def mutable_message(self, name: str) -> "Message":
        """Nested message of a singular MESSAGE field, created (and set) if absent."""
        fd = self.schema.field(name)
        if fd.kind is not Kind.MESSAGE or fd.is_repeated:
            raise TypeError(f"mutable_message(): field '{name}' is not a singular message")
        sub = self._values.get(name)
        if sub is None:
            sub = Message(self.schema.message_type(fd))
            self._values[name] = sub
        return sub

    # -------------------------------------------------------------- repeated
    def add(self, name: str, value: Any) -> None:
        fd = self.schema.field(name)
        if not fd.is_repeated:
            raise TypeError(f"add(): field '{name}' is not repeated")
        self._values.setdefault(name, []).append(self._check(fd, value))

    def extend(self, name: str, values: Iterable[Any]) -> None:
        for v in values:
            self.add(name, v)

    def values(self, name: str) -> List[Any]:
        fd = self.schema.field(name)
        if not fd.is_repeated:
            raise TypeError(f"values(): field '{name}' is not repeated")
        return list(self._values.get(name, ()))

    def add_message(self, name: str) -> "Message":
        """Append a fresh element to a repeated MESSAGE field and return it."""
        fd = self.schema.field(name)
        if fd.kind is not Kind.MESSAGE or not fd.is_repeated:
            raise TypeError(f"add_message(): field '{name}' is not a repeated message")
        sub = Message(self.schema.message_type(fd))
        self._values.setdefault(name, []).append(sub)
        return sub

    # ---------------------------------------------------------- initialization
    def missing_fields(self, prefix: str = "") -> List[str]:
        """Every required path still unset, recursively (not just the first)."""
        out: List[str] = []
        for fd in self.schema.fields:
            path = prefix + fd.name
            if fd.is_required and not fd.has_default and fd.name not in self._values:
                out.append(path)
            if fd.kind is not Kind.MESSAGE or fd.name not in self._values:
                continue
            if fd.is_repeated:
                for i, sub in enumerate(self._values[fd.name]):
                    out.extend(sub.missing_fields(f"{path}[{i}]."))
            else:
                out.extend(self._values[fd.name].missing_fields(path + "."))
        return out

    def is_initialized(self) -> bool:
        return not self.missing_fields()

    def initialization_error_string(self) -> str:
        return ", ".join(self.missing_fields())

    # ------------------------------------------------------------------- wire
    def serialize(self) -> bytes:
        from ..wire import serialize
        return serialize(self)

    def byte_size(self) -> int:
        return len(self.serialize())

    @classmethod
    def parse(cls, schema: MessageSchema, data: bytes) -> "Message":
        from ..wire import parse
        return parse(schema, data)

    # ------------------------------------------------------------------ misc
    def copy(self) -> "Message":
        out = Message(self.schema)
        for name, v in self._values.items():
            if isinstance(v, list):
                out._values[name] = [e.copy() if isinstance(e, Message) else e for e in v]
            else:
                out._values[name] = v.copy() if isinstance(v, Message) else v
        return out

    def set_fields(self) -> Tuple[str, ...]:
        """Names of the fields that are explicitly set / non-empty, in schema order."""
        return tuple(fd.name for fd in self.schema.fields if self._values.get(fd.name) not in (None, []))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        if self.schema.name != other.schema.name:
            return False
        # field-for-field on read values: unset == set to its default, empty repeated == absent
        for fd in self.schema.fields:
            if other.schema.find_field(fd.name) is None:
                return False
            if self.get(fd.name) != other.get(fd.name):
                return False
        return len(self.schema.fields) == len(other.schema.fields)

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={self._values[k]!r}" for k in self.set_fields())
        return f"{self.schema.name}({body})"

    # --------------------------------------------------------------- helpers
    def _default_of(self, fd: FieldDescriptor) -> Any:
        if fd.has_default:
            return fd.default
        k = fd.kind
        if k is Kind.MESSAGE:
            return Message(self.schema.message_type(fd))
        if k is Kind.ENUM:
            return self.schema.enum_type(fd).default.number
        if k in (Kind.DOUBLE, Kind.FLOAT):
            return 0.0
        if k is Kind.BOOL:
            return False
        if k is Kind.STRING:
            return ""
        if k is Kind.BYTES:
            return b""
        if k is Kind.GROUP:
            return None
        return 0

    def _check(self, fd: FieldDescriptor, value: Any) -> Any:
        """Type/range check of a value assigned to `fd` (TypeError / ValueError)."""
        k = fd.kind
        name = fd.name
        if k in _BOUNDS:
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise TypeError(f"field '{name}' expects an integer, got {type(value).__name__}")
            value = int(value)
            lo, hi = _BOUNDS[k]
            if not (lo <= value <= hi):
                raise ValueError(f"value {value} out of range [{lo}, {hi}] for field '{name}' ({k.value})")
            return value
        if k is Kind.DOUBLE or k is Kind.FLOAT:
            if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
                raise TypeError(f"field '{name}' expects a number, got {type(value).__name__}")
            value = float(value)
            return to_float32(value) if k is Kind.FLOAT else value
        if k is Kind.BOOL:
            if not isinstance(value, (bool, np.bool_)):
                raise TypeError(f"field '{name}' expects a bool, got {type(value).__name__}")
            return bool(value)
        if k is Kind.STRING:
            if not isinstance(value, str):
                raise TypeError(f"field '{name}' expects str, got {type(value).__name__}")
            return value
        if k is Kind.BYTES:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise TypeError(f"field '{name}' expects bytes, got {type(value).__name__}")
            return bytes(value)
        if k is Kind.ENUM:
            if isinstance(value, str):
                ev = self.schema.enum_type(fd).find_by_name(value)
                if ev is None:
                    raise UnknownEnumNameError(name, value)
                return ev.number
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise TypeError(f"field '{name}' expects an enum name or code, got {type(value).__name__}")
            value = int(value)
            lo, hi = _BOUNDS[Kind.INT32]
            if not (lo <= value <= hi):
                raise ValueError(f"enum code {value} out of int32 range for field '{name}'")
            return value
        if k is Kind.MESSAGE:
            if not isinstance(value, Message):
                raise TypeError(f"field '{name}' expects a Message, got {type(value).__name__}")
            if value.schema.name != fd.type_name:
                raise TypeError(f"field '{name}' expects a '{fd.type_name}' message, got '{value.schema.name}'")
            return value
        # GROUP: stored untouched; every codec operation rejects it
        return value
