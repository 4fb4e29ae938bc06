"""Messages sent to a terminal and the typed results it returns."""

from __future__ import annotations

from dataclasses import dataclass

from pcsctester.core.smartcard.status import describe_status_word


@dataclass
class Message:
    """Base class for messages sent to a terminal."""


@dataclass
class Result:
    """Base class for typed results from a terminal operation."""


@dataclass
class TransmitMessage(Message):
    """Send an APDU given as hex text."""

    apdu: str


@dataclass
class ControlMessage(Message):
    """Send a reader control command; code is an int or control-code text."""

    code: int | str
    data: str = ""


@dataclass
class TransmitOutcome(Result):
    apdu: bytes
    response: bytes
    sw1: int
    sw2: int
    duration_ms: int

    @property
    def sw(self) -> int:
        return (self.sw1 << 8) | self.sw2

    @property
    def data(self) -> bytes:
        """Response body without the trailing status word."""
        return self.response[:-2] if len(self.response) >= 2 else b""

    @property
    def description(self) -> str:
        return describe_status_word(self.sw1, self.sw2)

    def __repr__(self) -> str:
        sw = f"SW={self.sw:04X}"
        if self.data:
            return f"{self.data.hex(' ').upper()} {sw} ({self.duration_ms}ms)"
        return f"{sw} ({self.duration_ms}ms)"


@dataclass
class ControlOutcome(Result):
    code: int
    input: bytes
    output: bytes
    duration_ms: int
