"""Text <-> bytes conversion in the notations operators type at a prompt.

Accepted input forms for :func:`parse_hex`::

    0102030A
    01 02 03 0A
    0x01,0x02,0x03,0x0A
    01:02:03:0A
    01-02-03-0A
"""

from __future__ import annotations

from pcsctester.core.errors import InvalidControlCode, InvalidHex

BYTES_PER_LINE = 16
MAX_CONTROL_CODE = 0xFFFFFFFF

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_DEC_DIGITS = frozenset("0123456789")
_SEPARATORS = (" ", ",", ":", "-", "\t", "\n", "\r")


def _clean(text: str) -> str:
    cleaned = text.strip().replace("0x", "").replace("0X", "")
    for sep in _SEPARATORS:
        cleaned = cleaned.replace(sep, "")
    return cleaned.upper()


def _printable(b: int) -> str:
    return chr(b) if 0x20 <= b <= 0x7E else "."


def parse_hex(text: str) -> bytes:
    """Parse hex text into bytes. Blank input gives b''."""
    cleaned = _clean(text)
    if not cleaned:
        return b""
    if len(cleaned) % 2:
        raise InvalidHex(text, "hex string must have an even number of characters")
    if not _HEX_DIGITS.issuperset(cleaned):
        raise InvalidHex(text)
    return bytes.fromhex(cleaned)


def validate_hex(text: str) -> None:
    """Raise InvalidHex unless *text* parses; blank input is valid."""
    parse_hex(text)


def is_hex_like(text: str) -> bool:
    """True for a non-empty, even-length string of hex digits (separators ignored)."""
    cleaned = _clean(text)
    return bool(cleaned) and len(cleaned) % 2 == 0 and _HEX_DIGITS.issuperset(cleaned)


def format_hex(data: bytes) -> str:
    return data.hex().upper()


def format_hex_spaced(data: bytes) -> str:
    return data.hex(" ").upper()


def format_hex_prefixed(data: bytes) -> str:
    return ", ".join(f"0x{b:02X}" for b in data)


def format_ascii(data: bytes) -> str:
    """Printable ASCII (and space) as-is, everything else as '.'."""
    return "".join(_printable(b) for b in data)


def format_hex_dump(data: bytes) -> str:
    """Classic offset / hex / ASCII dump, 16 bytes per line."""
    if not data:
        return "(empty)"

    lines = []
    for offset in range(0, len(data), BYTES_PER_LINE):
        chunk = data[offset : offset + BYTES_PER_LINE]
        parts = [f"{offset:08X}: "]
        for j, b in enumerate(chunk):
            parts.append(f"{b:02X} ")
            if j == 7:
                parts.append(" ")
        # keep the ASCII column aligned on short lines
        if len(chunk) < 8:
            parts.append(" ")
        parts.append("   " * (BYTES_PER_LINE - len(chunk)))
        parts.append(" |")
        parts.append(format_ascii(chunk))
        parts.append("|")
        lines.append("".join(parts))
    return "\n".join(lines).rstrip()


def parse_control_code(text: str) -> int:
    """Parse a reader control code.

    ``0x``-prefixed text is hex. Otherwise text made only of hex digits and
    longer than three characters is also hex, so ``"1234"`` is 0x1234 while
    ``"123"`` is decimal 123. Everything else is decimal.
    """
    cleaned = text.strip()
    if cleaned[:2] in ("0x", "0X"):
        body = cleaned[2:]
        if not body or not _HEX_DIGITS.issuperset(body):
            raise InvalidControlCode(text, "invalid hex control code")
        value = int(body, 16)
    elif cleaned and _HEX_DIGITS.issuperset(cleaned) and len(cleaned) > 3:
        value = int(cleaned, 16)
    else:
        if not cleaned or not _DEC_DIGITS.issuperset(cleaned):
            raise InvalidControlCode(text, "invalid decimal control code")
        value = int(cleaned)
    if value > MAX_CONTROL_CODE:
        raise InvalidControlCode(text, "control code out of range")
    return value
