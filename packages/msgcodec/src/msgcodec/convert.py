# packages/msgcodec/src/msgcodec/convert.py
# -----------------------------------------------------------------------------
# Message <-> Value tree (JSON-equivalent) conversion.
#
#   message_to_value(msg)              → Object
#   message_from_value(schema, value)  → Message (validated: required fields)
#
# Inbound dispatch is a lookup table keyed by (ValueKind, field Kind); a pair
# absent from the table is a TypeMismatchError naming the field.

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, Optional, Tuple, Union

import numpy as np

from .config import CodecConfig, resolve_config
from .errors import (
    MissingRequiredFieldsError, NotAnObjectError, NumericRangeError,
    TypeMismatchError, UnknownEnumCodeError, UnknownEnumNameError,
    UnsupportedFieldKindError,
)
from .schema import (
    FLOATING_KINDS, INT32_KINDS, INT64_KINDS, INTEGRAL_KINDS, NUMERIC_KINDS,
    UINT32_KINDS, UINT64_KINDS,
    FieldDescriptor, Kind, Message, MessageSchema, integral_bounds, to_float32,
)
from .value import (
    Array, Boolean, Null, Number, Object, String, Value, ValueKind,
    dumps, from_python, loads,
)

__all__ = [
    "message_to_value", "message_from_value",
    "message_to_json", "message_from_json",
    "cast_number",
]

logger = logging.getLogger(__name__)

_VALUE_TYPES = (Null, Boolean, Number, String, Array, Object)
_U64_MASK = 0xFFFF_FFFF_FFFF_FFFF
_FLOAT32_MAX = float(np.finfo(np.float32).max)

_DTYPES: Dict[Kind, Any] = {}
for _kinds, _dtype in ((INT32_KINDS, np.int32), (INT64_KINDS, np.int64),
                       (UINT32_KINDS, np.uint32), (UINT64_KINDS, np.uint64)):
    for _k in _kinds:
        _DTYPES[_k] = _dtype


# -----------------------------------------------------------------------------
# Outbound: Message → Object
# -----------------------------------------------------------------------------
def message_to_value(message: Message) -> Object:
    """
    Render a message as an Object.

    A repeated field is included iff it has elements; a singular field iff it
    is set or carries a default. Enum codes render as their symbolic name.
    """
    schema = message.schema
    pairs = []
    for fd in schema.fields:
        if fd.is_repeated:
            elems = message.values(fd.name)
            if not elems:
                continue
            pairs.append((fd.name, Array(tuple(_element_to_value(schema, fd, e) for e in elems))))
        elif message.has(fd.name) or fd.has_default:
            pairs.append((fd.name, _element_to_value(schema, fd, message.get(fd.name))))
    return Object(tuple(pairs))


def _element_to_value(schema: MessageSchema, fd: FieldDescriptor, v: Any) -> Value:
    k = fd.kind
    if k in INTEGRAL_KINDS:
        return Number(int(v))
    if k in FLOATING_KINDS:
        return Number(float(v))
    if k is Kind.BOOL:
        return Boolean(bool(v))
    if k is Kind.STRING or k is Kind.BYTES:
        return String(v)
    if k is Kind.ENUM:
        ev = schema.enum_type(fd).find_by_number(int(v))
        if ev is None:
            raise UnknownEnumCodeError(fd.name, int(v))
        return String(ev.name)
    if k is Kind.MESSAGE:
        return message_to_value(v)
    raise UnsupportedFieldKindError(fd.name, k)


# -----------------------------------------------------------------------------
# Inbound: Object → Message
# -----------------------------------------------------------------------------
def message_from_value(schema: MessageSchema, value: Union[Value, Any], *,
                       config: Optional[CodecConfig] = None) -> Message:
    """
    Build a message of `schema` from a value tree (or plain dict).

    Unknown names are ignored. Errors: NotAnObjectError, TypeMismatchError,
    UnknownEnumNameError, NumericRangeError, UnsupportedFieldKindError, and
    MissingRequiredFieldsError listing every missing path.
    """
    cfg = resolve_config(config)
    if not isinstance(value, _VALUE_TYPES):
        value = from_python(value)
    if not isinstance(value, Object):
        raise NotAnObjectError(value.kind)
    message = Message(schema)
    _parse_object(message, value, cfg)
    missing = message.missing_fields()
    if missing:
        raise MissingRequiredFieldsError(missing)
    return message


def _parse_object(message: Message, obj: Object, cfg: CodecConfig) -> None:
    for name, value in obj.items():
        fd = message.schema.find_field(name)
        if fd is None:
            logger.debug("%s: ignoring unknown field '%s'", message.schema.name, name)
            continue
        _apply(message, fd, value, cfg, element=False)


def _apply(message: Message, fd: FieldDescriptor, value: Value, cfg: CodecConfig, *, element: bool) -> None:
    if fd.kind is Kind.GROUP:
        raise UnsupportedFieldKindError(fd.name, fd.kind)
    if isinstance(value, Array):
        # an element is dispatched as the value of a singular-shaped field
        if not fd.is_repeated or element:
            raise TypeMismatchError(fd.name, ValueKind.ARRAY, fd.kind)
        for item in value.values:
            _apply(message, fd, item, cfg, element=True)
        return
    handler = _DISPATCH.get((value.kind, fd.kind))
    if handler is None:
        raise TypeMismatchError(fd.name, value.kind, fd.kind)
    handler(message, fd, value, cfg)


def _store(message: Message, fd: FieldDescriptor, v: Any) -> None:
    if fd.is_repeated:
        message.add(fd.name, v)
    else:
        message.set(fd.name, v)


def _object_to_message(message: Message, fd: FieldDescriptor, value: Object, cfg: CodecConfig) -> None:
    if fd.is_repeated:
        _parse_object(message.add_message(fd.name), value, cfg)
    else:
        sub = Message(message.schema.message_type(fd))
        _parse_object(sub, value, cfg)
        message.set(fd.name, sub)


def _string_to_text(message: Message, fd: FieldDescriptor, value: String, cfg: CodecConfig) -> None:
    v = value.value
    _store(message, fd, v.decode("utf-8", "surrogateescape") if isinstance(v, bytes) else v)


def _string_to_bytes(message: Message, fd: FieldDescriptor, value: String, cfg: CodecConfig) -> None:
    v = value.value
    _store(message, fd, v.encode("utf-8", "surrogateescape") if isinstance(v, str) else v)


def _string_to_enum(message: Message, fd: FieldDescriptor, value: String, cfg: CodecConfig) -> None:
    symbol = value.value
    if isinstance(symbol, bytes):
        symbol = symbol.decode("utf-8", "surrogateescape")
    ev = message.schema.enum_type(fd).find_by_name(symbol)
    if ev is None:
        raise UnknownEnumNameError(fd.name, symbol)
    _store(message, fd, ev.number)


def _number_to_numeric(message: Message, fd: FieldDescriptor, value: Number, cfg: CodecConfig) -> None:
    _store(message, fd, cast_number(fd, value.value, strict=cfg.strict_numbers))


def _boolean_to_bool(message: Message, fd: FieldDescriptor, value: Boolean, cfg: CodecConfig) -> None:
    _store(message, fd, bool(value.value))


_Handler = Callable[[Message, FieldDescriptor, Any, CodecConfig], None]

_DISPATCH: Dict[Tuple[ValueKind, Kind], _Handler] = {
    (ValueKind.OBJECT, Kind.MESSAGE): _object_to_message,
    (ValueKind.STRING, Kind.STRING): _string_to_text,
    (ValueKind.STRING, Kind.BYTES): _string_to_bytes,
    (ValueKind.STRING, Kind.ENUM): _string_to_enum,
    (ValueKind.BOOLEAN, Kind.BOOL): _boolean_to_bool,
}
for _k in NUMERIC_KINDS:
    _DISPATCH[(ValueKind.NUMBER, _k)] = _number_to_numeric


# -----------------------------------------------------------------------------
# Numeric narrowing
# -----------------------------------------------------------------------------
def cast_number(fd: FieldDescriptor, x: Union[int, float], *, strict: bool = False) -> Union[int, float]:
    """
    Narrow a JSON number to the representation of `fd`.

    Permissive (default): DOUBLE keeps the float, FLOAT rounds to float32
    (overflow → ±inf), integral kinds truncate toward zero then wrap modulo
    2^width like a native integer cast. `strict=True` raises
    NumericRangeError for any magnitude outside the target range.
    A non-finite number never fits an integral kind.
    """
    k = fd.kind
    if k in FLOATING_KINDS:
        try:
            f = float(x)
        except OverflowError:
            raise NumericRangeError(fd.name, x, k) from None
        if k is Kind.DOUBLE:
            return f
        if strict and math.isfinite(f) and abs(f) > _FLOAT32_MAX:
            raise NumericRangeError(fd.name, x, k)
        return to_float32(f)

    if isinstance(x, float):
        if not math.isfinite(x):
            raise NumericRangeError(fd.name, x, k)
        x = int(x)  # truncation toward zero
    x = int(x)
    lo, hi = integral_bounds(k)
    if lo <= x <= hi:
        return x
    if strict:
        raise NumericRangeError(fd.name, x, k)
    return np.uint64(x & _U64_MASK).astype(_DTYPES[k]).item()


# -----------------------------------------------------------------------------
# JSON text helpers
# -----------------------------------------------------------------------------
def message_to_json(message: Message, *, indent: Optional[int] = None) -> str:
    return dumps(message_to_value(message), indent=indent)


def message_from_json(schema: MessageSchema, text: Union[str, bytes], *,
                      config: Optional[CodecConfig] = None) -> Message:
    return message_from_value(schema, loads(text), config=config)
