# packages/msgcodec/src/msgcodec/schema/__init__.py
from __future__ import annotations

# Descriptors (kinds, labels, fields, enums, message schemas)
from .descriptors import (
    Kind, Label, Cardinality,
    FieldDescriptor, EnumValue, EnumDescriptor, MessageSchema,
    INT32_KINDS, INT64_KINDS, UINT32_KINDS, UINT64_KINDS,
    INTEGRAL_KINDS, FLOATING_KINDS, NUMERIC_KINDS,
)

# Registry (build once, seal, share)
from .registry import SchemaRegistry

# Message instances
from .message import Message, integral_bounds, to_float32

__all__ = [
    "Kind", "Label", "Cardinality",
    "FieldDescriptor", "EnumValue", "EnumDescriptor", "MessageSchema",
    "INT32_KINDS", "INT64_KINDS", "UINT32_KINDS", "UINT64_KINDS",
    "INTEGRAL_KINDS", "FLOATING_KINDS", "NUMERIC_KINDS",
    "SchemaRegistry",
    "Message", "integral_bounds", "to_float32",
]
