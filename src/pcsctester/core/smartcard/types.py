from __future__ import annotations

import enum
from dataclasses import dataclass


class ShareMode(enum.Enum):
    """Exclusivity level of a reader connection."""

    SHARED = "shared"
    EXCLUSIVE = "exclusive"
    DIRECT = "direct"

    @classmethod
    def parse(cls, text: str) -> ShareMode:
        try:
            return cls(text.strip().lower())
        except ValueError:
            raise ValueError(f"invalid share mode: {text}") from None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ReaderDescriptor:
    """Snapshot of one reader taken during enumeration."""

    name: str
    card_present: bool = False
    atr: bytes | None = None

    def __repr__(self) -> str:
        status = "card" if self.card_present else "no card"
        if self.atr:
            return f"ReaderDescriptor({self.name!r}, {status}, ATR={self.atr.hex(' ').upper()})"
        return f"ReaderDescriptor({self.name!r}, {status})"
