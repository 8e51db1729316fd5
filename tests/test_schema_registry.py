from __future__ import annotations

import json

import pytest

from msgcodec.errors import EnumLookupError, SchemaError
from msgcodec.schema import (
    Cardinality, FieldDescriptor, Kind, Label, Message, SchemaRegistry,
)


def test_from_dict_builds_sealed_registry(registry, person_schema):
    assert registry.sealed
    assert "Person" in registry and "Status" in registry
    # numbers assigned by position
    assert [f.number for f in person_schema.fields][:3] == [1, 2, 3]
    assert person_schema.field("tags").cardinality is Cardinality.REPEATED
    assert person_schema.field("name").is_required
    assert person_schema.message_type(person_schema.field("role")).name == "RoleInfo"


def test_enum_default_is_stored_as_code(person_schema):
    assert person_schema.field("status").default == 1
    assert Message(person_schema).get("status") == 1


def test_dangling_reference_rejected_on_seal():
    reg = SchemaRegistry()
    reg.add_message("A", [FieldDescriptor("b", Kind.MESSAGE, type_name="B")])
    with pytest.raises(SchemaError, match="unknown message type"):
        reg.seal()


def test_cyclic_schema_rejected():
    doc = {"messages": {
        "A": [{"name": "b", "kind": "message", "type": "B"}],
        "B": [{"name": "a", "kind": "message", "type": "A"}],
    }}
    with pytest.raises(SchemaError, match="A -> B -> A"):
        SchemaRegistry.from_dict(doc)


def test_self_reference_rejected():
    doc = {"messages": {"Node": [{"name": "next", "kind": "message", "type": "Node"}]}}
    with pytest.raises(SchemaError, match="Node -> Node"):
        SchemaRegistry.from_dict(doc)


def test_duplicate_field_name_and_number():
    reg = SchemaRegistry()
    with pytest.raises(SchemaError, match="duplicate field name"):
        reg.add_message("A", [FieldDescriptor("x", Kind.INT32), FieldDescriptor("x", Kind.INT64)])
    with pytest.raises(SchemaError, match="field number 5"):
        reg.add_message("B", [FieldDescriptor("x", Kind.INT32, number=5),
                              FieldDescriptor("y", Kind.INT32, number=5)])


def test_duplicate_type_name():
    reg = SchemaRegistry()
    reg.add_enum("T", {"A": 0})
    with pytest.raises(SchemaError, match="duplicate type name"):
        reg.add_message("T", [])


@pytest.mark.parametrize("field", [
    {"name": "x", "kind": "int32", "default": "seven"},
    {"name": "x", "kind": "int32", "default": 1.5},
    {"name": "x", "kind": "bool", "default": 1},
    {"name": "x", "kind": "string", "label": "repeated", "default": "a"},
    {"name": "x", "kind": "enum", "type": "Status", "default": "MAYBE"},
    {"name": "x", "kind": "int32", "default": 2**40},
    {"name": "x", "kind": "uint32", "default": -1},
    {"name": "x", "kind": "sfixed64", "default": 2**63},
])
def test_bad_defaults_rejected(field):
    doc = {"enums": {"Status": {"OK": 0}}, "messages": {"M": [field]}}
    with pytest.raises(SchemaError):
        SchemaRegistry.from_dict(doc)


def test_unknown_kind_and_label():
    with pytest.raises(SchemaError, match="unknown kind"):
        SchemaRegistry.from_dict({"messages": {"M": [{"name": "x", "kind": "int128"}]}})
    with pytest.raises(SchemaError, match="unknown label"):
        SchemaRegistry.from_dict({"messages": {"M": [{"name": "x", "kind": "int32", "label": "maybe"}]}})


def test_sealed_registry_is_read_only(registry):
    with pytest.raises(SchemaError, match="sealed"):
        registry.add_enum("Other", {"A": 0})
    assert registry.seal() is registry  # idempotent


def test_message_requires_sealed_registry():
    reg = SchemaRegistry()
    ms = reg.add_message("M", [FieldDescriptor("x", Kind.INT32)])
    with pytest.raises(SchemaError, match="seal"):
        Message(ms)


def test_unknown_lookup(registry):
    with pytest.raises(SchemaError):
        registry.message("Nope")
    with pytest.raises(SchemaError):
        registry.enum("Person")


def test_enum_descriptor_lookups(registry):
    status = registry.enum("Status")
    assert status.default.name == "UNKNOWN"
    assert status.number_of("REJECT") == 2
    assert status.name_of(1) == "ACCEPT"
    assert status.find_by_name("MAYBE") is None
    with pytest.raises(EnumLookupError) as ei:
        status.name_of(42)
    assert str(ei.value) == "enum 'Status' has no member 42"


def test_enum_list_form_and_aliases():
    reg = SchemaRegistry.from_dict({"enums": {"E": [
        {"name": "A", "number": 1}, {"name": "ALIAS", "number": 1}, {"name": "B", "number": 2},
    ]}})
    e = reg.enum("E")
    assert e.name_of(1) == "A"  # first name wins
    assert e.number_of("ALIAS") == 1


def test_load_file(tmp_path):
    p = tmp_path / "schema.json"
    p.write_text(json.dumps({"messages": {"M": [{"name": "x", "kind": "uint64", "label": "required"}]}}),
                 encoding="utf-8")
    reg = SchemaRegistry.load_file(p)
    assert reg.message("M").field("x").label is Label.REQUIRED

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(SchemaError, match="not valid JSON"):
        SchemaRegistry.load_file(bad)


def test_float_default_is_float32():
    from msgcodec.convert import message_to_value
    from msgcodec.schema import to_float32
    from msgcodec.value import Number

    reg = SchemaRegistry.from_dict({"messages": {"M": [
        {"name": "f", "kind": "float", "default": 0.1},
        {"name": "d", "kind": "double", "default": 0.1},
        {"name": "u", "kind": "uint32", "default": 2**32 - 1},
    ]}})
    ms = reg.message("M")
    assert ms.field("f").default == to_float32(0.1) != 0.1
    assert ms.field("d").default == 0.1
    # an unset float renders exactly like the same value set explicitly
    unset, explicit = Message(ms), Message(ms)
    explicit.set("f", 0.1)
    assert message_to_value(unset)["f"] == message_to_value(explicit)["f"] == Number(to_float32(0.1))
