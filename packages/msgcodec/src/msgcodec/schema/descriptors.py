from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Optional, Tuple

from ..errors import EnumLookupError, SchemaError

if TYPE_CHECKING:  # pragma: no cover
    from .registry import SchemaRegistry

__all__ = [
    "Kind", "Label", "Cardinality",
    "FieldDescriptor", "EnumValue", "EnumDescriptor", "MessageSchema",
    "INT32_KINDS", "INT64_KINDS", "UINT32_KINDS", "UINT64_KINDS",
    "INTEGRAL_KINDS", "FLOATING_KINDS", "NUMERIC_KINDS",
]


class Kind(enum.Enum):
    DOUBLE = "double"
    FLOAT = "float"
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    SINT32 = "sint32"
    SINT64 = "sint64"
    FIXED32 = "fixed32"
    FIXED64 = "fixed64"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"
    ENUM = "enum"
    MESSAGE = "message"
    GROUP = "group"  # legacy, declared but never converted


class Label(enum.Enum):
    OPTIONAL = "optional"
    REQUIRED = "required"
    REPEATED = "repeated"


class Cardinality(enum.Enum):
    SINGULAR = "singular"
    REPEATED = "repeated"


# Integral families: members of one family share their value representation.
INT32_KINDS = frozenset({Kind.INT32, Kind.SINT32, Kind.SFIXED32})
INT64_KINDS = frozenset({Kind.INT64, Kind.SINT64, Kind.SFIXED64})
UINT32_KINDS = frozenset({Kind.UINT32, Kind.FIXED32})
UINT64_KINDS = frozenset({Kind.UINT64, Kind.FIXED64})
INTEGRAL_KINDS = INT32_KINDS | INT64_KINDS | UINT32_KINDS | UINT64_KINDS
FLOATING_KINDS = frozenset({Kind.DOUBLE, Kind.FLOAT})
NUMERIC_KINDS = INTEGRAL_KINDS | FLOATING_KINDS


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """
    One field of a message schema.

    Fields
    ------
    name : str
        Unique within the schema; the key used in value trees.
    kind : Kind
    label : Label, default=Label.OPTIONAL
    number : int | None
        Wire field number. Assigned by position (1..n) when left to None.
    default : Any
        Python-native default, None for "no default". Enum defaults may be
        given by symbolic name; the registry stores the numeric code.
    type_name : str | None
        Registry name of the nested MessageSchema (MESSAGE) or
        EnumDescriptor (ENUM).
    """

    name: str
    kind: Kind
    label: Label = Label.OPTIONAL
    number: Optional[int] = None
    default: Any = None
    type_name: Optional[str] = None

    @property
    def cardinality(self) -> Cardinality:
        return Cardinality.REPEATED if self.label is Label.REPEATED else Cardinality.SINGULAR

    @property
    def is_repeated(self) -> bool:
        return self.label is Label.REPEATED

    @property
    def is_required(self) -> bool:
        return self.label is Label.REQUIRED

    @property
    def has_default(self) -> bool:
        return self.default is not None


@dataclass(frozen=True, slots=True)
class EnumValue:
    name: str
    number: int


class EnumDescriptor:
    """Ordered set of (symbolic name, numeric code) members."""

    __slots__ = ("name", "_values", "_by_name", "_by_number")

    def __init__(self, name: str, values: Iterable[Tuple[str, int]]) -> None:
        self.name = name
        self._values: Tuple[EnumValue, ...] = tuple(EnumValue(str(n), int(v)) for n, v in values)
        if not self._values:
            raise SchemaError(f"enum '{name}' has no members")
        self._by_name: Dict[str, EnumValue] = {}
        self._by_number: Dict[int, EnumValue] = {}
        for ev in self._values:
            if ev.name in self._by_name:
                raise SchemaError(f"enum '{name}': duplicate member name '{ev.name}'")
            self._by_name[ev.name] = ev
            self._by_number.setdefault(ev.number, ev)  # aliases: first name wins

    @property
    def values(self) -> Tuple[EnumValue, ...]:
        return self._values

    @property
    def default(self) -> EnumValue:
        return self._values[0]

    def find_by_name(self, name: str) -> Optional[EnumValue]:
        return self._by_name.get(name)

    def find_by_number(self, number: int) -> Optional[EnumValue]:
        return self._by_number.get(number)

    def number_of(self, name: str) -> int:
        ev = self._by_name.get(name)
        if ev is None:
            raise EnumLookupError(self.name, name)
        return ev.number

    def name_of(self, number: int) -> str:
        ev = self._by_number.get(number)
        if ev is None:
            raise EnumLookupError(self.name, number)
        return ev.name

    def __iter__(self) -> Iterator[EnumValue]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"EnumDescriptor({self.name!r}, {[(v.name, v.number) for v in self._values]!r})"


class MessageSchema:
    """
    Field descriptors of one message type, bound to the registry that owns it.

    Lookups by name and by wire number are dict lookups.
    """

    __slots__ = ("name", "registry", "_fields", "_by_name", "_by_number")

    def __init__(self, name: str, fields: Iterable[FieldDescriptor], registry: "SchemaRegistry") -> None:
        self.name = name
        self.registry = registry
        out: List[FieldDescriptor] = []
        by_name: Dict[str, FieldDescriptor] = {}
        by_number: Dict[int, FieldDescriptor] = {}
        for position, fd in enumerate(fields, 1):
            if not isinstance(fd, FieldDescriptor):
                raise SchemaError(f"message '{name}': expected FieldDescriptor, got {type(fd).__name__}")
            if fd.number is None:
                fd = FieldDescriptor(fd.name, fd.kind, fd.label, position, fd.default, fd.type_name)
            if fd.name in by_name:
                raise SchemaError(f"message '{name}': duplicate field name '{fd.name}'")
            if fd.number <= 0:
                raise SchemaError(f"message '{name}': field '{fd.name}' has invalid number {fd.number}")
            if fd.number in by_number:
                raise SchemaError(
                    f"message '{name}': field number {fd.number} used by both "
                    f"'{by_number[fd.number].name}' and '{fd.name}'"
                )
            by_name[fd.name] = fd
            by_number[fd.number] = fd
            out.append(fd)
        self._fields: Tuple[FieldDescriptor, ...] = tuple(out)
        self._by_name = by_name
        self._by_number = by_number

    @property
    def fields(self) -> Tuple[FieldDescriptor, ...]:
        return self._fields

    def find_field(self, name: str) -> Optional[FieldDescriptor]:
        return self._by_name.get(name)

    def find_field_by_number(self, number: int) -> Optional[FieldDescriptor]:
        return self._by_number.get(number)

    def field(self, name: str) -> FieldDescriptor:
        fd = self._by_name.get(name)
        if fd is None:
            raise KeyError(f"message '{self.name}' has no field '{name}'")
        return fd

    def message_type(self, field: FieldDescriptor) -> "MessageSchema":
        return self.registry.message(field.type_name)

    def enum_type(self, field: FieldDescriptor) -> EnumDescriptor:
        return self.registry.enum(field.type_name)

    def _replace_field(self, fd: FieldDescriptor) -> None:
        # only used by the registry while sealing (default normalization)
        self._by_name[fd.name] = fd
        self._by_number[fd.number] = fd
        self._fields = tuple(fd if f.name == fd.name else f for f in self._fields)

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"MessageSchema({self.name!r}, fields={[f.name for f in self._fields]!r})"
