from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..errors import SchemaError
from .descriptors import (
    FLOATING_KINDS, INTEGRAL_KINDS,
    EnumDescriptor, FieldDescriptor, Kind, Label, MessageSchema,
)
from .message import integral_bounds, to_float32

__all__ = ["SchemaRegistry"]


class SchemaRegistry:
    """
    Process-wide collection of message schemas and enum descriptors.

    Build it once (`add_enum` / `add_message`, or `from_dict`), then `seal()`
    it. Sealing checks that every MESSAGE/ENUM field references a known type,
    normalizes defaults and rejects message graphs with cycles. A sealed
    registry is read-only and safe to share between threads.
    """

    def __init__(self) -> None:
        self._messages: Dict[str, MessageSchema] = {}
        self._enums: Dict[str, EnumDescriptor] = {}
        self._sealed = False

    # ------------------------------------------------------------------ build
    def add_enum(self, name: str, values: Union[Mapping[str, int], Iterable[Tuple[str, int]]]) -> EnumDescriptor:
        self._check_open(name)
        if isinstance(values, Mapping):
            values = values.items()
        ed = EnumDescriptor(name, values)
        self._enums[name] = ed
        return ed

    def add_message(self, name: str, fields: Iterable[FieldDescriptor]) -> MessageSchema:
        self._check_open(name)
        ms = MessageSchema(name, fields, self)
        self._messages[name] = ms
        return ms

    def _check_open(self, name: str) -> None:
        if self._sealed:
            raise SchemaError(f"registry is sealed, cannot add '{name}'")
        if not name:
            raise SchemaError("type name must be a non-empty string")
        if name in self._messages or name in self._enums:
            raise SchemaError(f"duplicate type name '{name}'")

    # ------------------------------------------------------------------- seal
    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> "SchemaRegistry":
        """Validate the whole registry and freeze it. Idempotent."""
        if self._sealed:
            return self
        for ms in self._messages.values():
            for fd in ms.fields:
                self._check_field(ms, fd)
        self._check_acyclic()
        self._sealed = True
        return self

    def _check_field(self, ms: MessageSchema, fd: FieldDescriptor) -> None:
        where = f"{ms.name}.{fd.name}"
        if not isinstance(fd.kind, Kind):
            raise SchemaError(f"{where}: kind must be a Kind, got {fd.kind!r}")
        if not isinstance(fd.label, Label):
            raise SchemaError(f"{where}: label must be a Label, got {fd.label!r}")
        if fd.kind is Kind.MESSAGE and fd.type_name not in self._messages:
            raise SchemaError(f"{where}: unknown message type {fd.type_name!r}")
        if fd.kind is Kind.ENUM and fd.type_name not in self._enums:
            raise SchemaError(f"{where}: unknown enum type {fd.type_name!r}")
        if fd.default is None:
            return
        if fd.is_repeated:
            raise SchemaError(f"{where}: repeated fields cannot carry a default")
        ms._replace_field(_with_default(fd, self._normalize_default(where, fd)))

    def _normalize_default(self, where: str, fd: FieldDescriptor) -> Any:
        d = fd.default
        k = fd.kind
        if k is Kind.ENUM:
            ed = self._enums[fd.type_name]
            if isinstance(d, str):
                ev = ed.find_by_name(d)
            elif isinstance(d, int) and not isinstance(d, bool):
                ev = ed.find_by_number(d)
            else:
                ev = None
            if ev is None:
                raise SchemaError(f"{where}: default {d!r} is not a member of enum '{ed.name}'")
            return ev.number
        if k in INTEGRAL_KINDS:
            if isinstance(d, bool) or not isinstance(d, (int, float)) or (isinstance(d, float) and not d.is_integer()):
                raise SchemaError(f"{where}: default {d!r} is not an integer")
            lo, hi = integral_bounds(k)
            if not (lo <= int(d) <= hi):
                raise SchemaError(f"{where}: default {d!r} out of range [{lo}, {hi}] for {k.value}")
            return int(d)
        if k in FLOATING_KINDS:
            if isinstance(d, bool) or not isinstance(d, (int, float)):
                raise SchemaError(f"{where}: default {d!r} is not a number")
            return to_float32(d) if k is Kind.FLOAT else float(d)
        if k is Kind.BOOL:
            if not isinstance(d, bool):
                raise SchemaError(f"{where}: default {d!r} is not a boolean")
            return d
        if k is Kind.STRING:
            if not isinstance(d, str):
                raise SchemaError(f"{where}: default {d!r} is not a string")
            return d
        if k is Kind.BYTES:
            if isinstance(d, str):
                return d.encode("utf-8", "surrogateescape")
            if not isinstance(d, (bytes, bytearray)):
                raise SchemaError(f"{where}: default {d!r} is not bytes")
            return bytes(d)
        raise SchemaError(f"{where}: fields of kind {k.value} cannot carry a default")

    def _check_acyclic(self) -> None:
        # DFS: WHITE (absent) → GREY (on stack) → BLACK (done)
        state: Dict[str, int] = {}

        def visit(name: str, path: List[str]) -> None:
            state[name] = 1
            for fd in self._messages[name].fields:
                if fd.kind is not Kind.MESSAGE:
                    continue
                nxt = fd.type_name
                if state.get(nxt) == 1:
                    cycle = path[path.index(nxt):] + [nxt]
                    raise SchemaError("cyclic message schema: " + " -> ".join(cycle))
                if nxt not in state:
                    visit(nxt, path + [nxt])
            state[name] = 2

        for name in self._messages:
            if name not in state:
                visit(name, [name])

    # ----------------------------------------------------------------- lookup
    def message(self, name: Optional[str]) -> MessageSchema:
        ms = self._messages.get(name)  # type: ignore[arg-type]
        if ms is None:
            raise SchemaError(f"unknown message type {name!r}")
        return ms

    def enum(self, name: Optional[str]) -> EnumDescriptor:
        ed = self._enums.get(name)  # type: ignore[arg-type]
        if ed is None:
            raise SchemaError(f"unknown enum type {name!r}")
        return ed

    def messages(self) -> Tuple[str, ...]:
        return tuple(self._messages)

    def enums(self) -> Tuple[str, ...]:
        return tuple(self._enums)

    def __contains__(self, name: object) -> bool:
        return name in self._messages or name in self._enums

    # ----------------------------------------------------------------- loader
    @staticmethod
    def from_dict(doc: Mapping[str, Any]) -> "SchemaRegistry":
        """
        Build and seal a registry from a schema document:

            {"enums":    {"Status": {"UNKNOWN": 1, "ACCEPT": 2}},
             "messages": {"RoleInfo": [{"name": "name", "kind": "string",
                                        "label": "required"}, ...]}}

        Field entries accept name, kind, label, number, default, type.
        """
        reg = SchemaRegistry()
        for ename, members in (doc.get("enums") or {}).items():
            if isinstance(members, Mapping):
                reg.add_enum(ename, members)
            else:
                reg.add_enum(ename, [(m["name"], m["number"]) for m in members])
        for mname, fields in (doc.get("messages") or {}).items():
            reg.add_message(mname, [_field_from_dict(mname, f) for f in fields])
        return reg.seal()

    @staticmethod
    def load_file(path: Union[str, Path]) -> "SchemaRegistry":
        p = Path(path)
        with p.open("rb") as f:
            try:
                doc = json.load(f)
            except ValueError as e:
                raise SchemaError(f"schema file '{p}' is not valid JSON: {e}") from e
        return SchemaRegistry.from_dict(doc)


def _field_from_dict(mname: str, f: Mapping[str, Any]) -> FieldDescriptor:
    try:
        name = f["name"]
    except (KeyError, TypeError):
        raise SchemaError(f"message '{mname}': field entry without a name: {f!r}") from None
    try:
        kind = Kind(str(f.get("kind", "")).lower())
    except ValueError:
        raise SchemaError(f"{mname}.{name}: unknown kind {f.get('kind')!r}") from None
    try:
        label = Label(str(f.get("label", "optional")).lower())
    except ValueError:
        raise SchemaError(f"{mname}.{name}: unknown label {f.get('label')!r}") from None
    number = f.get("number")
    if number is not None and (isinstance(number, bool) or not isinstance(number, int)):
        raise SchemaError(f"{mname}.{name}: field number must be an integer")
    return FieldDescriptor(name=name, kind=kind, label=label, number=number,
                           default=f.get("default"), type_name=f.get("type"))


def _with_default(fd: FieldDescriptor, default: Any) -> FieldDescriptor:
    return FieldDescriptor(fd.name, fd.kind, fd.label, fd.number, default, fd.type_name)
