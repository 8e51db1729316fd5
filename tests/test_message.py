from __future__ import annotations

import pytest

from msgcodec.errors import UnknownEnumNameError
from msgcodec.schema import Message


def test_unset_fields_read_defaults(person_schema):
    p = Message(person_schema)
    assert not p.has("age") and p.get("age") == 0
    assert p.get("status") == 1
    assert p.get("score") == 0.0 and p.get("blob") == b"" and p.get("tags") == ()
    assert not p.has("role")
    assert p.get("role") == Message(person_schema.registry.message("RoleInfo"))


def test_set_checks_type_and_range(person_schema):
    p = Message(person_schema)
    with pytest.raises(TypeError):
        p.set("age", "42")
    with pytest.raises(TypeError):
        p.set("age", True)
    with pytest.raises(ValueError, match="out of range"):
        p.set("age", 2**31)
    with pytest.raises(TypeError, match="repeated"):
        p.set("tags", ["x"])
    with pytest.raises(KeyError):
        p.set("nope", 1)


def test_enum_by_name_or_code(person_schema):
    p = Message(person_schema)
    p.set("status", "REJECT")
    assert p.get("status") == 2
    p.set("status", 0)
    assert p.get("status") == 0
    with pytest.raises(UnknownEnumNameError):
        p.set("status", "MAYBE")


def test_float_field_holds_float32_precision(person_schema):
    p = Message(person_schema)
    p.set("ratio", 0.1)
    assert p.get("ratio") != 0.1
    assert abs(p.get("ratio") - 0.1) < 1e-7


def test_repeated_and_nested(person_schema):
    p = Message(person_schema)
    p.extend("tags", ["x", "y"])
    p.add("tags", "z")
    assert p.count("tags") == 3 and p.values("tags") == ["x", "y", "z"]
    role = p.mutable_message("role")
    assert p.has("role") and p.mutable_message("role") is role
    h = p.add_message("history")
    h.set("name", "n")
    assert p.count("history") == 1
    p.clear("tags")
    assert not p.has("tags")


def test_missing_fields_lists_every_path(person_schema):
    p = Message(person_schema)
    p.mutable_message("role")
    p.add_message("history").set("name", "ok")
    p.add_message("history")
    assert p.missing_fields() == ["name", "id", "role.name", "history[1].name"]
    assert not p.is_initialized()
    assert p.initialization_error_string() == "name, id, role.name, history[1].name"


def test_copy_is_deep_and_equal(make_person):
    a = make_person()
    b = a.copy()
    assert a == b
    b.mutable_message("role").set("level", 9)
    assert a != b
    assert a.get("role").get("level") == 3


def test_wrong_nested_message_type(person_schema, registry):
    p = Message(person_schema)
    with pytest.raises(TypeError, match="RoleInfo"):
        p.set("role", Message(registry.message("Packed")))
