# packages/msgcodec/src/msgcodec/__init__.py
from __future__ import annotations

"""msgcodec - schema-driven message codec (public surface).

Value trees, schema registry, message <-> value conversion, and
length-prefixed record framing on byte streams.
"""

__version__ = "1.0.0"

from .config import CodecConfig, resolve_config
from .errors import (
    CodecError, SchemaError, UnsupportedFieldKindError, EnumLookupError,
    ConversionError, NotAnObjectError, TypeMismatchError,
    UnknownEnumNameError, UnknownEnumCodeError, NumericRangeError,
    MissingRequiredFieldsError, UninitializedError, RecordTooLargeError,
    StreamIOError, CorruptionError, DeserializationError,
)
from .schema import (
    Kind, Label, Cardinality, FieldDescriptor, EnumDescriptor, MessageSchema,
    SchemaRegistry, Message,
)
from .convert import message_to_value, message_from_value, message_to_json, message_from_json
from .framing import (
    write_record, read_record, iter_records, write_path, append_path, read_path,
)

__all__ = [
    "__version__",
    "CodecConfig", "resolve_config",
    "CodecError", "SchemaError", "UnsupportedFieldKindError", "EnumLookupError",
    "ConversionError", "NotAnObjectError", "TypeMismatchError",
    "UnknownEnumNameError", "UnknownEnumCodeError", "NumericRangeError",
    "MissingRequiredFieldsError", "UninitializedError", "RecordTooLargeError",
    "StreamIOError", "CorruptionError", "DeserializationError",
    "Kind", "Label", "Cardinality", "FieldDescriptor", "EnumDescriptor", "MessageSchema",
    "SchemaRegistry", "Message",
    "message_to_value", "message_from_value", "message_to_json", "message_from_json",
    "write_record", "read_record", "iter_records", "write_path", "append_path", "read_path",
]
