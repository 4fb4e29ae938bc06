"""Command history records and their JSON form."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

from pcsctester.core.errors import MalformedHistory


@dataclass(frozen=True)
class Transmit:
    """APDU sent to the card."""


@dataclass(frozen=True)
class Control:
    """Reader control command, addressed by a numeric code."""

    code: int


CommandKind = Union[Transmit, Control]


def kind_label(kind: CommandKind) -> str:
    """Short label used in history listings, e.g. TRANSMIT or CONTROL(0x42000C00)."""
    if isinstance(kind, Transmit):
        return "TRANSMIT"
    if isinstance(kind, Control):
        return f"CONTROL(0x{kind.code:X})"
    raise TypeError(f"unknown command kind: {kind!r}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CommandRecord:
    """One attempted transport operation."""

    kind: CommandKind
    input: bytes
    output: bytes = b""
    success: bool = True
    error: str | None = None
    duration_ms: int = 0
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Statistics:
    total: int = 0
    successful: int = 0
    failed: int = 0
    average_duration_ms: int = 0

    @classmethod
    def of(cls, records: Iterable[CommandRecord]) -> Statistics:
        records = list(records)
        total = len(records)
        if not total:
            return cls()
        successful = sum(1 for r in records if r.success)
        avg = sum(r.duration_ms for r in records) // total
        return cls(
            total=total,
            successful=successful,
            failed=total - successful,
            average_duration_ms=avg,
        )


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

_FIELDS = ("timestamp", "kind", "input", "output", "success", "error", "durationMillis")


def _kind_to_json(kind: CommandKind) -> Any:
    if isinstance(kind, Transmit):
        return "Transmit"
    if isinstance(kind, Control):
        return {"Control": {"code": kind.code}}
    raise TypeError(f"unknown command kind: {kind!r}")


def _kind_from_json(value: Any) -> CommandKind:
    if value == "Transmit":
        return Transmit()
    if isinstance(value, dict) and set(value) == {"Control"}:
        body = value["Control"]
        code = body.get("code") if isinstance(body, dict) else None
        if isinstance(code, int) and not isinstance(code, bool) and 0 <= code <= 0xFFFFFFFF:
            return Control(code)
    raise MalformedHistory(f"bad kind: {value!r}")


def _bytes_from_json(name: str, value: Any) -> bytes:
    if isinstance(value, str):
        try:
            return bytes.fromhex(value)
        except ValueError:
            raise MalformedHistory(f"bad hex in '{name}': {value!r}") from None
    if isinstance(value, list):
        if all(isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 0xFF for b in value):
            return bytes(value)
    raise MalformedHistory(f"bad byte sequence in '{name}'")


def _timestamp_from_json(value: Any) -> datetime:
    if not isinstance(value, str):
        raise MalformedHistory(f"bad timestamp: {value!r}")
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise MalformedHistory(f"bad timestamp: {value!r}") from None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def record_to_dict(record: CommandRecord) -> dict[str, Any]:
    return {
        "timestamp": record.timestamp.astimezone(timezone.utc).isoformat(),
        "kind": _kind_to_json(record.kind),
        "input": record.input.hex().upper(),
        "output": record.output.hex().upper(),
        "success": record.success,
        "error": record.error,
        "durationMillis": record.duration_ms,
    }


def record_from_dict(obj: Any) -> CommandRecord:
    if not isinstance(obj, dict):
        raise MalformedHistory(f"expected an object, got {type(obj).__name__}")
    missing = [k for k in _FIELDS if k not in obj]
    if missing:
        raise MalformedHistory(f"missing field(s): {', '.join(missing)}")

    success = obj["success"]
    if not isinstance(success, bool):
        raise MalformedHistory(f"bad success flag: {success!r}")
    error = obj["error"]
    if error is not None and not isinstance(error, str):
        raise MalformedHistory(f"bad error: {error!r}")
    duration = obj["durationMillis"]
    if isinstance(duration, bool) or not isinstance(duration, int) or duration < 0:
        raise MalformedHistory(f"bad durationMillis: {duration!r}")

    return CommandRecord(
        kind=_kind_from_json(obj["kind"]),
        input=_bytes_from_json("input", obj["input"]),
        output=_bytes_from_json("output", obj["output"]),
        success=success,
        error=error,
        duration_ms=duration,
        timestamp=_timestamp_from_json(obj["timestamp"]),
    )


def dumps(records: Iterable[CommandRecord]) -> str:
    return json.dumps([record_to_dict(r) for r in records], indent=2)


def loads(text: str) -> list[CommandRecord]:
    """Parse exported history. Raises MalformedHistory; never returns partial results."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise MalformedHistory(f"invalid JSON ({exc})") from exc
    if not isinstance(data, list):
        raise MalformedHistory("expected a list of records")
    return [record_from_dict(item) for item in data]
