"""ISO 7816-4 status word (SW1 SW2) descriptions."""

from __future__ import annotations

_STATUS_WORDS: dict[tuple[int, int], str] = {
    (0x90, 0x00): "Success",
    (0x62, 0x00): "Warning: No information given",
    (0x62, 0x81): "Warning: Part of returned data may be corrupted",
    (0x62, 0x82): "Warning: End of file reached",
    (0x62, 0x83): "Warning: Selected file invalidated",
    (0x62, 0x84): "Warning: FCI not formatted",
    (0x63, 0x00): "Warning: No information given",
    (0x64, 0x00): "Error: Execution error",
    (0x65, 0x00): "Error: No precise diagnosis",
    (0x65, 0x81): "Error: Memory failure",
    (0x66, 0x00): "Error: Reserved",
    (0x67, 0x00): "Error: Wrong length",
    (0x68, 0x00): "Error: Functions in CLA not supported",
    (0x68, 0x81): "Error: Logical channel not supported",
    (0x68, 0x82): "Error: Secure messaging not supported",
    (0x69, 0x00): "Error: Command not allowed",
    (0x69, 0x81): "Error: Command incompatible with file structure",
    (0x69, 0x82): "Error: Security status not satisfied",
    (0x69, 0x83): "Error: Authentication method blocked",
    (0x69, 0x84): "Error: Referenced data invalidated",
    (0x69, 0x85): "Error: Conditions of use not satisfied",
    (0x69, 0x86): "Error: Command not allowed (no current EF)",
    (0x69, 0x87): "Error: Expected SM data objects missing",
    (0x69, 0x88): "Error: SM data objects incorrect",
    (0x6A, 0x00): "Error: Wrong parameter(s) P1-P2",
    (0x6A, 0x80): "Error: Incorrect parameters in data field",
    (0x6A, 0x81): "Error: Function not supported",
    (0x6A, 0x82): "Error: File not found",
    (0x6A, 0x83): "Error: Record not found",
    (0x6A, 0x84): "Error: Not enough memory space in file",
    (0x6A, 0x85): "Error: Lc inconsistent with TLV structure",
    (0x6A, 0x86): "Error: Incorrect parameters P1-P2",
    (0x6A, 0x87): "Error: Lc inconsistent with P1-P2",
    (0x6A, 0x88): "Error: Referenced data not found",
    (0x6B, 0x00): "Error: Wrong parameter(s) P1-P2",
    (0x6D, 0x00): "Error: Instruction code not supported or invalid",
    (0x6E, 0x00): "Error: Class not supported",
    (0x6F, 0x00): "Error: No precise diagnosis",
}


def describe_status_word(sw1: int, sw2: int) -> str:
    """Return a human-readable description of a status word."""
    text = _STATUS_WORDS.get((sw1, sw2))
    if text is not None:
        return text
    if sw1 == 0x61:
        return f"Success, {sw2} bytes available"
    if sw1 == 0x63 and sw2 & 0xF0 == 0xC0:
        return f"Warning: Counter = {sw2 & 0x0F}"
    if sw1 == 0x6C:
        return f"Error: Wrong Le field, exact length: {sw2}"
    return f"Unknown status: {sw1:02X} {sw2:02X}"


def split_status_word(response: bytes) -> tuple[int, int]:
    """Return (sw1, sw2) from the last two bytes, or (0, 0) for a short response."""
    if len(response) < 2:
        return 0, 0
    return response[-2], response[-1]
