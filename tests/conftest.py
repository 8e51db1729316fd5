from __future__ import annotations

import pytest

from msgcodec.schema import Message, SchemaRegistry

SCHEMA_DOC = {
    "enums": {
        "Status": {"UNKNOWN": 0, "ACCEPT": 1, "REJECT": 2},
    },
    "messages": {
        "RoleInfo": [
            {"name": "name", "kind": "string", "label": "required"},
            {"name": "level", "kind": "uint32"},
        ],
        "Person": [
            {"name": "name", "kind": "string", "label": "required"},
            {"name": "id", "kind": "int64", "label": "required"},
            {"name": "age", "kind": "int32", "default": 0},
            {"name": "status", "kind": "enum", "type": "Status", "default": "ACCEPT"},
            {"name": "score", "kind": "double"},
            {"name": "ratio", "kind": "float"},
            {"name": "active", "kind": "bool"},
            {"name": "blob", "kind": "bytes"},
            {"name": "tags", "kind": "string", "label": "repeated"},
            {"name": "lucky", "kind": "sint32", "label": "repeated"},
            {"name": "role", "kind": "message", "type": "RoleInfo"},
            {"name": "history", "kind": "message", "type": "RoleInfo", "label": "repeated"},
        ],
        "AllKinds": [
            {"name": "d", "kind": "double"},
            {"name": "f", "kind": "float"},
            {"name": "i32", "kind": "int32"},
            {"name": "i64", "kind": "int64"},
            {"name": "u32", "kind": "uint32"},
            {"name": "u64", "kind": "uint64"},
            {"name": "s32", "kind": "sint32"},
            {"name": "s64", "kind": "sint64"},
            {"name": "fx32", "kind": "fixed32"},
            {"name": "fx64", "kind": "fixed64"},
            {"name": "sfx32", "kind": "sfixed32"},
            {"name": "sfx64", "kind": "sfixed64"},
            {"name": "b", "kind": "bool"},
            {"name": "s", "kind": "string"},
            {"name": "raw", "kind": "bytes"},
            {"name": "e", "kind": "enum", "type": "Status"},
        ],
        "Packed": [
            {"name": "nums", "kind": "int32", "label": "repeated"},
        ],
        "Legacy": [
            {"name": "id", "kind": "int32"},
            {"name": "old", "kind": "group"},
        ],
    },
}


@pytest.fixture
def registry() -> SchemaRegistry:
    return SchemaRegistry.from_dict(SCHEMA_DOC)


@pytest.fixture
def person_schema(registry):
    return registry.message("Person")


@pytest.fixture
def make_person(person_schema):
    """Factory of fully initialized Person records (every kind populated)."""
    def _make(name: str = "Alice", id: int = 7) -> Message:
        p = Message(person_schema, name=name, id=id)
        p.set("age", 42)
        p.set("status", "REJECT")
        p.set("score", 0.25)
        p.set("ratio", 1.5)
        p.set("active", True)
        p.set("blob", b"\x00\xffraw")
        p.extend("tags", ["a", "b"])
        p.extend("lucky", [-3, 0, 9])
        role = p.mutable_message("role")
        role.set("name", "admin")
        role.set("level", 3)
        p.add_message("history").set("name", "guest")
        return p
    return _make
