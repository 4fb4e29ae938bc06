"""In-memory transport standing in for the PC/SC service."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from pcsctester.core.base import CommandExecutor, PCSCTerminal, ReaderSession
from pcsctester.core.errors import (
    ConnectError,
    NoCard,
    ReaderNotFound,
    ServiceUnavailable,
    TransportError,
)
from pcsctester.core.smartcard import ShareMode

ATR_R1 = bytes.fromhex("3BAC00402A001225006480000310009000")


@dataclass
class FakeReader:
    name: str
    card_present: bool = True
    atr: bytes = ATR_R1
    responses: dict[bytes, bytes] = field(default_factory=dict)
    default_response: bytes = b"\x90\x00"
    control_responses: dict[int, bytes] = field(default_factory=dict)
    fail_transmit: str | None = None
    fail_control: str | None = None
    fail_connect: bool = False
    fail_status: bool = False
    fail_disconnect: bool = False
    open_connections: int = 0
    sent: list[bytes] = field(default_factory=list)
    controls: list[tuple[int, bytes]] = field(default_factory=list)


class FakeConnection:
    def __init__(self, reader: FakeReader, mode: ShareMode) -> None:
        self.reader = reader
        self.mode = mode
        self.closed = False
        reader.open_connections += 1

    def transmit(self, apdu: bytes) -> bytes:
        self.reader.sent.append(apdu)
        if self.reader.fail_transmit:
            raise TransportError(self.reader.fail_transmit)
        return self.reader.responses.get(apdu, self.reader.default_response)

    def control(self, code: int, data: bytes) -> bytes:
        self.reader.controls.append((code, data))
        if self.reader.fail_control:
            raise TransportError(self.reader.fail_control)
        return self.reader.control_responses.get(code, b"")

    def get_status(self) -> bytes:
        if self.reader.fail_status:
            raise TransportError("status failed")
        return self.reader.atr

    def disconnect(self) -> None:
        self.closed = True
        self.reader.open_connections -= 1
        if self.reader.fail_disconnect:
            raise TransportError("disconnect failed")


class FakeContext:
    def __init__(self, transport: FakeTransport) -> None:
        self.transport = transport
        self.released = False

    def list_reader_names(self) -> list[str]:
        return [r.name for r in self.transport.readers]

    def connect(self, name: str, share_mode: ShareMode) -> FakeConnection:
        self.transport.connects.append((name, share_mode))
        reader = self.transport.find(name)
        if reader is None:
            raise ReaderNotFound(name)
        if reader.fail_connect:
            raise ConnectError(name, "sharing violation")
        if not reader.card_present and share_mode is not ShareMode.DIRECT:
            raise NoCard(name)
        return FakeConnection(reader, share_mode)

    def release(self) -> None:
        self.released = True


class FakeTransport:
    def __init__(self, *readers: FakeReader, available: bool = True) -> None:
        self.readers = list(readers)
        self.available = available
        self.connects: list[tuple[str, ShareMode]] = []
        self.contexts: list[FakeContext] = []

    def find(self, name: str) -> FakeReader | None:
        for r in self.readers:
            if r.name == name:
                return r
        return None

    def establish_context(self) -> FakeContext:
        if not self.available:
            raise ServiceUnavailable("PC/SC service not running")
        context = FakeContext(self)
        self.contexts.append(context)
        return context


class FakeClock:
    """Monotonic clock advancing by a fixed step on each read."""

    def __init__(self, step: float = 0.25) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def r1() -> FakeReader:
    return FakeReader("R1")


@pytest.fixture
def r2() -> FakeReader:
    return FakeReader("R2", card_present=False, atr=b"")


@pytest.fixture
def transport(r1, r2) -> FakeTransport:
    return FakeTransport(r1, r2)


@pytest.fixture
def session(transport):
    with ReaderSession(transport) as s:
        s.establish()
        yield s


@pytest.fixture
def connected(session):
    session.connect("R1", ShareMode.SHARED)
    return session


@pytest.fixture
def executor() -> CommandExecutor:
    return CommandExecutor(clock=FakeClock())


@pytest.fixture
def terminal(connected, executor) -> PCSCTerminal:
    return PCSCTerminal(connected, executor)
