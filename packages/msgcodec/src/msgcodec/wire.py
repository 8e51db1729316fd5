# packages/msgcodec/src/msgcodec/wire.py
# Binary serialization of a Message (proto2-compatible tagged encoding).
#
#   key = varint((field_number << 3) | wire_type), then the value:
#     0 VARINT  int32/64, uint32/64, sint32/64 (zigzag), bool, enum
#     1 I64     double, fixed64, sfixed64          (little-endian)
#     2 LEN     string, bytes, message, packed repeated scalars (read only)
#     5 I32     float, fixed32, sfixed32            (little-endian)
#
# Repeated scalars are written unpacked; packed input is accepted. Unknown
# field numbers are skipped on parse. Groups (3/4) are rejected.
from __future__ import annotations

import struct
from typing import Any, Dict, List, Tuple

from .errors import UnsupportedFieldKindError
from .schema import FieldDescriptor, Kind, Message, MessageSchema

__all__ = ["serialize", "parse", "encode_varint", "decode_varint"]

_LE = "<"  # little-endian

VARINT, I64, LEN, SGROUP, EGROUP, I32 = 0, 1, 2, 3, 4, 5

_U64 = 0xFFFF_FFFF_FFFF_FFFF

_WIRE_TYPE: Dict[Kind, int] = {
    Kind.INT32: VARINT, Kind.INT64: VARINT, Kind.UINT32: VARINT, Kind.UINT64: VARINT,
    Kind.SINT32: VARINT, Kind.SINT64: VARINT, Kind.BOOL: VARINT, Kind.ENUM: VARINT,
    Kind.DOUBLE: I64, Kind.FIXED64: I64, Kind.SFIXED64: I64,
    Kind.FLOAT: I32, Kind.FIXED32: I32, Kind.SFIXED32: I32,
    Kind.STRING: LEN, Kind.BYTES: LEN, Kind.MESSAGE: LEN,
}

_FIXED_FMT: Dict[Kind, str] = {
    Kind.DOUBLE: _LE + "d", Kind.FIXED64: _LE + "Q", Kind.SFIXED64: _LE + "q",
    Kind.FLOAT: _LE + "f", Kind.FIXED32: _LE + "I", Kind.SFIXED32: _LE + "i",
}


# -----------------------------------------------------------------------------
# varint / zigzag
# -----------------------------------------------------------------------------
def encode_varint(value: int) -> bytes:
    if value < 0:
        raise ValueError("varint: negative value")
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_varint(data: bytes, offset: int) -> Tuple[int, int]:
    result = 0
    shift = 0
    index = offset
    while True:
        if index >= len(data):
            raise ValueError("wire: truncated varint")
        byte = data[index]
        result |= (byte & 0x7F) << shift
        index += 1
        if byte < 0x80:
            return result & _U64, index
        shift += 7
        if shift >= 70:
            raise ValueError("wire: varint too large")


def _signed(u: int, bits: int) -> int:
    u &= (1 << bits) - 1
    return u - (1 << bits) if u >> (bits - 1) else u


def _zigzag(v: int, bits: int) -> int:
    return ((v << 1) ^ (v >> (bits - 1))) & ((1 << bits) - 1)


def _unzigzag(u: int, bits: int) -> int:
    u &= (1 << bits) - 1
    return (u >> 1) ^ -(u & 1)


# -----------------------------------------------------------------------------
# serialize
# -----------------------------------------------------------------------------
def _encode_scalar(fd: FieldDescriptor, v: Any) -> bytes:
    k = fd.kind
    if k in (Kind.INT32, Kind.INT64, Kind.ENUM):
        return encode_varint(int(v) & _U64)  # negatives: 10-byte two's complement
    if k in (Kind.UINT32, Kind.UINT64):
        return encode_varint(int(v))
    if k is Kind.SINT32:
        return encode_varint(_zigzag(int(v), 32))
    if k is Kind.SINT64:
        return encode_varint(_zigzag(int(v), 64))
    if k is Kind.BOOL:
        return b"\x01" if v else b"\x00"
    if k in _FIXED_FMT:
        return struct.pack(_FIXED_FMT[k], v)
    if k is Kind.STRING:
        raw = v.encode("utf-8", "surrogateescape")
        return encode_varint(len(raw)) + raw
    if k is Kind.BYTES:
        return encode_varint(len(v)) + bytes(v)
    if k is Kind.MESSAGE:
        body = serialize(v)
        return encode_varint(len(body)) + body
    raise UnsupportedFieldKindError(fd.name, k)


def serialize(message: Message) -> bytes:
    """Message → bytes. Only set singular fields and repeated elements are written."""
    out = bytearray()
    for fd in sorted(message.schema.fields, key=lambda f: f.number):
        if not message.has(fd.name):
            continue
        if fd.kind not in _WIRE_TYPE:
            raise UnsupportedFieldKindError(fd.name, fd.kind)
        key = encode_varint((fd.number << 3) | _WIRE_TYPE[fd.kind])
        elems = message.values(fd.name) if fd.is_repeated else [message.get(fd.name)]
        for v in elems:
            out += key
            out += _encode_scalar(fd, v)
    return bytes(out)


# -----------------------------------------------------------------------------
# parse
# -----------------------------------------------------------------------------
def _read_len(data: bytes, off: int) -> Tuple[bytes, int]:
    n, off = decode_varint(data, off)
    end = off + n
    if end > len(data):
        raise ValueError("wire: truncated length-delimited field")
    return bytes(data[off:end]), end


def _read_fixed(data: bytes, off: int, size: int) -> Tuple[bytes, int]:
    if off + size > len(data):
        raise ValueError("wire: truncated fixed-width field")
    return bytes(data[off:off + size]), off + size


def _skip(data: bytes, off: int, wire_type: int) -> int:
    if wire_type == VARINT:
        return decode_varint(data, off)[1]
    if wire_type == I64:
        return _read_fixed(data, off, 8)[1]
    if wire_type == LEN:
        return _read_len(data, off)[1]
    if wire_type == I32:
        return _read_fixed(data, off, 4)[1]
    raise ValueError(f"wire: unsupported wire type {wire_type}")


def _decode_varint_value(fd: FieldDescriptor, u: int) -> Any:
    k = fd.kind
    if k in (Kind.INT32, Kind.ENUM):
        return _signed(u, 32)
    if k is Kind.INT64:
        return _signed(u, 64)
    if k is Kind.UINT32:
        return u & 0xFFFFFFFF
    if k is Kind.UINT64:
        return u
    if k is Kind.SINT32:
        return _signed(_unzigzag(u, 64), 32)
    if k is Kind.SINT64:
        return _unzigzag(u, 64)
    return u != 0  # BOOL


def _read_one(fd: FieldDescriptor, schema: MessageSchema, data: bytes, off: int) -> Tuple[Any, int]:
    k = fd.kind
    wt = _WIRE_TYPE[k]
    if wt == VARINT:
        u, off = decode_varint(data, off)
        return _decode_varint_value(fd, u), off
    if wt in (I64, I32):
        fmt = _FIXED_FMT[k]
        raw, off = _read_fixed(data, off, struct.calcsize(fmt))
        (v,) = struct.unpack(fmt, raw)
        return v, off
    raw, off = _read_len(data, off)
    if k is Kind.STRING:
        return raw.decode("utf-8", "surrogateescape"), off
    if k is Kind.BYTES:
        return raw, off
    return parse(schema.message_type(fd), raw), off


def _read_packed(fd: FieldDescriptor, schema: MessageSchema, data: bytes, off: int) -> Tuple[List[Any], int]:
    raw, off = _read_len(data, off)
    out: List[Any] = []
    pos = 0
    while pos < len(raw):
        v, pos = _read_one(fd, schema, raw, pos)
        out.append(v)
    return out, off


def parse(schema: MessageSchema, data: bytes) -> Message:
    """
    bytes → Message of `schema`. Raises ValueError on malformed input.
    Required-field completeness is *not* checked here.
    """
    data = bytes(data)
    msg = Message(schema)
    off = 0
    while off < len(data):
        key, off = decode_varint(data, off)
        number, wire_type = key >> 3, key & 0x7
        if number == 0:
            raise ValueError("wire: invalid field number 0")
        fd = schema.find_field_by_number(number)
        if fd is None:
            off = _skip(data, off, wire_type)
            continue
        if fd.kind not in _WIRE_TYPE:
            raise UnsupportedFieldKindError(fd.name, fd.kind)
        expected = _WIRE_TYPE[fd.kind]
        if wire_type == expected:
            v, off = _read_one(fd, schema, data, off)
            values = [v]
        elif wire_type == LEN and fd.is_repeated and expected != LEN:
            values, off = _read_packed(fd, schema, data, off)
        else:
            raise ValueError(
                f"wire: field '{fd.name}' ({fd.kind.value}) has wire type {wire_type}, expected {expected}"
            )
        if fd.is_repeated:
            msg.extend(fd.name, values)
        else:
            msg.set(fd.name, values[-1])
    return msg
