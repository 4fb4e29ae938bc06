"""Human-readable rendering of readers, responses and history."""

from __future__ import annotations

from collections.abc import Sequence

from pcsctester.core.base import CommandRecord, ControlOutcome, Statistics, TransmitOutcome
from pcsctester.core.base.history import kind_label
from pcsctester.core.smartcard import (
    ReaderDescriptor,
    describe_status_word,
    format_ascii,
    format_hex,
    format_hex_dump,
    format_hex_spaced,
)

RESPONSE_FORMATS = ("hex", "spaced", "dump", "ascii", "all")


def _hex(data: bytes) -> str:
    return format_hex_spaced(data) if data else "(empty)"


def format_reader_list(readers: Sequence[ReaderDescriptor], detailed: bool = False) -> str:
    if not readers:
        return "No PCSC readers found."
    lines = ["Available PCSC readers:"]
    for i, reader in enumerate(readers):
        if detailed:
            lines.append(f"  [{i}] {reader.name}")
            lines.append(f"      Status: {'Card present' if reader.card_present else 'No card'}")
            if reader.atr:
                lines.append(f"      ATR: {format_hex_spaced(reader.atr)}")
        elif reader.card_present and reader.atr:
            lines.append(f"  [{i}] {reader.name} [CARD - ATR: {format_hex_spaced(reader.atr)}]")
        elif reader.card_present:
            lines.append(f"  [{i}] {reader.name} [CARD]")
        else:
            lines.append(f"  [{i}] {reader.name}")
    return "\n".join(lines)


def format_response(data: bytes, fmt: str = "spaced") -> str:
    """Render response bytes in one of RESPONSE_FORMATS."""
    if not data:
        return "Response: (empty)"
    if fmt == "hex":
        return f"Response: {format_hex(data)}"
    if fmt == "spaced":
        return f"Response: {format_hex_spaced(data)}"
    if fmt == "dump":
        return f"Response:\n{format_hex_dump(data)}"
    if fmt == "ascii":
        return f"Response (ASCII): {format_ascii(data)}"
    if fmt == "all":
        lines = [
            f"Response (Hex): {format_hex_spaced(data)}",
            f"Response (ASCII): {format_ascii(data)}",
        ]
        if len(data) > 16:
            lines.append(f"Response (Dump):\n{format_hex_dump(data)}")
        return "\n".join(lines)
    raise ValueError(f"invalid format: {fmt}")


def format_status(sw1: int, sw2: int) -> str:
    return f"Status: {sw1:02X} {sw2:02X} ({describe_status_word(sw1, sw2)})"


def format_transmit(outcome: TransmitOutcome, fmt: str = "spaced", show_apdu: bool = False) -> str:
    lines = []
    if show_apdu:
        lines.append(f"APDU: {format_hex_spaced(outcome.apdu)}")
    lines.append(format_response(outcome.response, fmt))
    lines.append(format_status(outcome.sw1, outcome.sw2))
    lines.append(f"Duration: {outcome.duration_ms}ms")
    return "\n".join(lines)


def format_control(outcome: ControlOutcome, fmt: str = "spaced", show_code: bool = False) -> str:
    lines = []
    if show_code:
        lines.append(f"Control Code: 0x{outcome.code:X} ({outcome.code})")
        if outcome.input:
            lines.append(f"Input: {format_hex_spaced(outcome.input)}")
    lines.append(format_response(outcome.output, fmt))
    lines.append(f"Duration: {outcome.duration_ms}ms")
    return "\n".join(lines)


def format_history(records: Sequence[CommandRecord], detailed: bool = False) -> str:
    if not records:
        return "No commands in history"
    lines = ["Command history:"]
    for i, record in enumerate(records, 1):
        status = "OK" if record.success else "ERROR"
        lines.append(
            f"  [{i}] {record.timestamp:%H:%M:%S} {kind_label(record.kind)}"
            f" - {status} ({record.duration_ms}ms)"
        )
        if detailed:
            lines.append(f"      >> {_hex(record.input)}")
            if record.success:
                lines.append(f"      << {_hex(record.output)}")
            else:
                lines.append(f"      !! {record.error}")
    return "\n".join(lines)


def format_statistics(stats: Statistics) -> str:
    return "\n".join([
        f"Total commands:   {stats.total}",
        f"Successful:       {stats.successful}",
        f"Failed:           {stats.failed}",
        f"Average duration: {stats.average_duration_ms}ms",
    ])
