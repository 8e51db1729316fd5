from __future__ import annotations

import io
import logging
import struct

import pytest

from msgcodec.config import CodecConfig
from msgcodec.errors import (
    CorruptionError, DeserializationError, RecordTooLargeError,
    StreamIOError, UninitializedError,
)
from msgcodec.framing import PREFIX_SIZE, iter_records, read_record, write_record
from msgcodec.schema import Message


def _frame(message, config=None) -> bytes:
    buf = io.BytesIO()
    write_record(buf, message, config=config)
    return buf.getvalue()


def test_write_then_read_in_order(make_person, person_schema):
    r1, r2 = make_person("R1", 1), make_person("R2", 2)
    buf = io.BytesIO()
    n = write_record(buf, r1)
    write_record(buf, r2)
    assert n == PREFIX_SIZE + r1.byte_size()
    buf.seek(0)
    assert read_record(buf, person_schema) == r1
    assert read_record(buf, person_schema) == r2
    assert read_record(buf, person_schema) is None


def test_frame_layout(make_person):
    p = make_person()
    frame = _frame(p)
    assert struct.unpack("<I", frame[:4])[0] == len(frame) - 4
    assert frame[4:] == p.serialize()


def test_empty_stream_is_no_more_records(person_schema):
    assert read_record(io.BytesIO(), person_schema) is None


def test_truncated_payload(make_person, person_schema):
    frame = _frame(make_person())
    short = frame[:PREFIX_SIZE + 2]
    with pytest.raises(CorruptionError, match="Failed to read message of size"):
        read_record(io.BytesIO(short), person_schema)
    assert read_record(io.BytesIO(short), person_schema, ignore_partial=True) is None


def test_truncated_prefix(person_schema):
    with pytest.raises(CorruptionError, match="Failed to read size"):
        read_record(io.BytesIO(b"\x05\x00"), person_schema)
    assert read_record(io.BytesIO(b"\x05\x00"), person_schema, ignore_partial=True) is None


def test_undo_failed_restores_cursor(make_person, person_schema):
    r1 = make_person()
    frame = _frame(r1)
    buf = io.BytesIO(frame[:PREFIX_SIZE + 2])
    with pytest.raises(CorruptionError):
        read_record(buf, person_schema, undo_failed=True)
    assert buf.tell() == 0
    assert read_record(buf, person_schema, ignore_partial=True, undo_failed=True) is None
    assert buf.tell() == 0

    # the writer finishes the frame; the next read recovers it
    buf.seek(0, io.SEEK_END)
    buf.write(frame[PREFIX_SIZE + 2:])
    buf.seek(0)
    assert read_record(buf, person_schema, undo_failed=True) == r1
    assert buf.tell() == len(frame)


def test_without_undo_cursor_moves(make_person, person_schema):
    frame = _frame(make_person())
    buf = io.BytesIO(frame[:PREFIX_SIZE + 2])
    with pytest.raises(CorruptionError):
        read_record(buf, person_schema)
    assert buf.tell() == PREFIX_SIZE + 2


def test_write_uninitialized_writes_nothing(person_schema):
    buf = io.BytesIO()
    p = Message(person_schema, name="no id")
    with pytest.raises(UninitializedError) as ei:
        write_record(buf, p)
    assert ei.value.paths == ["id"]
    assert str(ei.value) == "id is required but not initialized"
    assert buf.getvalue() == b""


def test_undecodable_payload(person_schema):
    data = struct.pack("<I", 1) + b"\x08"
    buf = io.BytesIO(data)
    with pytest.raises(DeserializationError) as ei:
        read_record(buf, person_schema, undo_failed=True)
    assert isinstance(ei.value.__cause__, ValueError)
    assert buf.tell() == 0


def test_payload_missing_required_fields(person_schema):
    with pytest.raises(DeserializationError, match="name, id"):
        read_record(io.BytesIO(struct.pack("<I", 0)), person_schema)


def test_zero_length_payload_is_a_record(registry):
    ms = registry.message("Packed")
    buf = io.BytesIO(struct.pack("<I", 0) * 2)
    assert read_record(buf, ms) == Message(ms)
    assert read_record(buf, ms) == Message(ms)
    assert read_record(buf, ms) is None


def test_big_endian_prefix(make_person, person_schema):
    cfg = CodecConfig(byte_order="big")
    p = make_person()
    frame = _frame(p, config=cfg)
    assert frame[:4] == struct.pack(">I", p.byte_size())
    assert read_record(io.BytesIO(frame), person_schema, config=cfg) == p
    # read with the wrong order: the announced size overruns the stream
    with pytest.raises(CorruptionError):
        read_record(io.BytesIO(frame), person_schema)


def test_max_record_size(make_person, person_schema):
    frame = _frame(make_person())
    cfg = CodecConfig(max_record_size=8)
    buf = io.BytesIO(frame)
    with pytest.raises(CorruptionError, match="exceeds"):
        read_record(buf, person_schema, ignore_partial=True, undo_failed=True, config=cfg)
    assert buf.tell() == 0


def test_record_too_large(make_person, monkeypatch):
    class Huge:
        def __len__(self):
            return 2**32

    monkeypatch.setattr("msgcodec.framing.stream.serialize", lambda m: Huge())
    buf = io.BytesIO()
    with pytest.raises(RecordTooLargeError):
        write_record(buf, make_person())
    assert buf.getvalue() == b""


class _FailingIO(io.BytesIO):
    def __init__(self, *a, fail: str, **kw):
        super().__init__(*a, **kw)
        self.fail = fail

    def read(self, *a):
        if self.fail == "read":
            raise OSError(5, "Input/output error")
        return super().read(*a)

    def write(self, *a):
        if self.fail == "write":
            raise OSError(28, "No space left on device")
        return super().write(*a)

    def seek(self, *a):
        if self.fail == "seek":
            raise OSError(29, "Illegal seek")
        return super().seek(*a)


def test_io_errors_are_wrapped(make_person, person_schema):
    with pytest.raises(StreamIOError) as ei:
        read_record(_FailingIO(fail="read"), person_schema)
    assert ei.value.operation == "read"
    assert isinstance(ei.value.__cause__, OSError)

    with pytest.raises(StreamIOError) as ei:
        write_record(_FailingIO(fail="write"), make_person())
    assert ei.value.operation == "write"


def test_failed_restore_is_logged(person_schema, caplog):
    buf = _FailingIO(b"\x05\x00", fail="seek")
    with caplog.at_level(logging.WARNING, logger="msgcodec.framing.stream"):
        with pytest.raises(CorruptionError):
            read_record(buf, person_schema, undo_failed=True)
    assert "could not restore" in caplog.text


def test_iter_records(make_person, person_schema):
    recs = [make_person(f"P{i}", i) for i in range(5)]
    buf = io.BytesIO(b"".join(_frame(r) for r in recs) + b"\x09\x00")
    assert list(iter_records(buf, person_schema, ignore_partial=True)) == recs
    buf.seek(0)
    with pytest.raises(CorruptionError):
        list(iter_records(buf, person_schema))


def test_undo_failed_after_io_error(make_person, person_schema):
    r1 = make_person()

    class _PayloadReadFails(io.BytesIO):
        # the length prefix reads fine, the payload read fails once
        calls = 0

        def read(self, *a):
            self.calls += 1
            if self.calls == 2:
                raise OSError(5, "Input/output error")
            return super().read(*a)

    buf = _PayloadReadFails(_frame(r1))
    with pytest.raises(StreamIOError) as ei:
        read_record(buf, person_schema, undo_failed=True)
    assert ei.value.operation == "read"
    assert buf.tell() == 0
    assert read_record(buf, person_schema, undo_failed=True) == r1


def test_undo_failed_after_truncated_prefix(make_person, person_schema):
    r1 = make_person()
    frame = _frame(r1)
    buf = io.BytesIO(frame[:2])
    with pytest.raises(CorruptionError, match="Failed to read size"):
        read_record(buf, person_schema, undo_failed=True)
    assert buf.tell() == 0

    buf.seek(0, io.SEEK_END)
    buf.write(frame[2:])
    buf.seek(0)
    assert read_record(buf, person_schema, undo_failed=True) == r1
    assert read_record(buf, person_schema, undo_failed=True) is None
