"""Boundary with the hardware-access service.

Anything that talks to readers (pyscard, a test double, a remote bridge)
implements these three protocols. The session and executor only ever see
these methods.
"""

from __future__ import annotations

from typing import Protocol

from pcsctester.core.smartcard.types import ShareMode


class Connection(Protocol):
    """A live connection to one reader."""

    def transmit(self, apdu: bytes) -> bytes:
        """Send an APDU, return the full response including SW1 SW2."""
        ...

    def control(self, code: int, data: bytes) -> bytes: ...

    def get_status(self) -> bytes:
        """Return the ATR of the card in the reader."""
        ...

    def disconnect(self) -> None:
        """Close the connection, leaving the card powered and in place."""
        ...


class Context(Protocol):
    """An established hardware-access context."""

    def list_reader_names(self) -> list[str]: ...

    def connect(self, name: str, share_mode: ShareMode) -> Connection: ...

    def release(self) -> None: ...


class Transport(Protocol):
    def establish_context(self) -> Context: ...
