import json
from datetime import datetime, timezone

import pytest

from pcsctester.core.base import CommandExecutor, CommandRecord, Control, Transmit
from pcsctester.core.base.history import kind_label, loads, record_to_dict
from pcsctester.core.errors import MalformedHistory

TS = datetime(2024, 5, 17, 12, 30, 45, 123456, tzinfo=timezone.utc)


def _records():
    return [
        CommandRecord(kind=Transmit(), input=bytes.fromhex("00A40400"),
                      output=b"\x90\x00", duration_ms=25, timestamp=TS),
        CommandRecord(kind=Control(0x42000C00), input=b"\x01\x02",
                      output=b"\x03\x04", duration_ms=15, timestamp=TS),
        CommandRecord(kind=Transmit(), input=b"\x00\xb0", output=b"", success=False,
                      error="Transmit failed: timeout", duration_ms=3, timestamp=TS),
    ]


@pytest.fixture
def filled():
    executor = CommandExecutor()
    for r in _records():
        executor.add_to_history(r)
    return executor


def test_export_format(filled):
    data = json.loads(filled.export_history())
    assert data[0] == {
        "timestamp": "2024-05-17T12:30:45.123456+00:00",
        "kind": "Transmit",
        "input": "00A40400",
        "output": "9000",
        "success": True,
        "error": None,
        "durationMillis": 25,
    }
    assert data[1]["kind"] == {"Control": {"code": 0x42000C00}}
    assert data[2]["error"] == "Transmit failed: timeout"


def test_export_import_round_trip(filled):
    fresh = CommandExecutor()
    fresh.import_history(filled.export_history())
    assert fresh.history() == filled.history()


def test_import_appends(filled):
    text = filled.export_history()
    assert filled.import_history(text) == 3
    assert len(filled.history()) == 6
    assert filled.history()[3:] == filled.history()[:3]


def test_export_import_empty():
    executor = CommandExecutor()
    text = executor.export_history()
    assert text.strip() == "[]"
    executor.import_history(text)
    assert executor.history() == ()


def test_import_accepts_byte_lists_and_z_suffix():
    executor = CommandExecutor()
    executor.import_history(json.dumps([{
        "timestamp": "2024-05-17T12:30:45Z",
        "kind": "Transmit",
        "input": [0, 164, 4, 0],
        "output": [144, 0],
        "success": True,
        "error": None,
        "durationMillis": 7,
    }]))
    (record,) = executor.history()
    assert record.input == bytes.fromhex("00A40400")
    assert record.timestamp == datetime(2024, 5, 17, 12, 30, 45, tzinfo=timezone.utc)


@pytest.mark.parametrize("text", [
    "invalid json",
    "{}",
    '[{"invalid": "structure"}]',
    "[1]",
])
def test_import_rejects_malformed(filled, text):
    with pytest.raises(MalformedHistory):
        filled.import_history(text)
    assert len(filled.history()) == 3


def _valid():
    return record_to_dict(_records()[1])


@pytest.mark.parametrize("key, value", [
    ("kind", "Bogus"),
    ("kind", {"Control": {}}),
    ("kind", {"Control": {"code": -1}}),
    ("input", "0G"),
    ("input", [256]),
    ("success", "yes"),
    ("error", 5),
    ("durationMillis", -1),
    ("durationMillis", 1.5),
    ("timestamp", "yesterday"),
])
def test_import_rejects_bad_fields(key, value):
    item = _valid()
    item[key] = value
    with pytest.raises(MalformedHistory):
        loads(json.dumps([item]))


def test_import_missing_field_is_atomic(filled):
    good = _valid()
    bad = _valid()
    del bad["durationMillis"]
    with pytest.raises(MalformedHistory) as exc:
        filled.import_history(json.dumps([good, bad]))
    assert "durationMillis" in str(exc.value)
    assert len(filled.history()) == 3


def test_kind_label():
    assert kind_label(Transmit()) == "TRANSMIT"
    assert kind_label(Control(0x3136)) == "CONTROL(0x3136)"
    with pytest.raises(TypeError):
        kind_label("Transmit")
