"""Exception taxonomy shared by the codec, session, executor and runner."""

from __future__ import annotations


class PCSCTesterError(Exception):
    """Base class for every error raised by pcsc-tester."""


# --- input validation (raised before any transport call) ---


class InvalidHex(PCSCTesterError, ValueError):
    def __init__(self, text: str, reason: str = "invalid hex string") -> None:
        super().__init__(f"{reason}: '{text}'")
        self.text = text


class InvalidControlCode(PCSCTesterError, ValueError):
    def __init__(self, text: str, reason: str = "invalid control code") -> None:
        super().__init__(f"{reason}: '{text}'")
        self.text = text


class EmptyCommand(PCSCTesterError):
    def __init__(self) -> None:
        super().__init__("APDU cannot be empty")


class UnknownCommand(PCSCTesterError):
    def __init__(self, token: str) -> None:
        super().__init__(f"unknown command: {token}")
        self.token = token


class MissingArgument(PCSCTesterError):
    def __init__(self, command: str, argument: str) -> None:
        super().__init__(f"missing {argument} for {command} command")
        self.command = command
        self.argument = argument


# --- session ---


class ServiceUnavailable(PCSCTesterError):
    """The PC/SC service could not be reached."""


class SessionClosed(PCSCTesterError):
    def __init__(self) -> None:
        super().__init__("session is closed")


class NotConnected(PCSCTesterError):
    def __init__(self) -> None:
        super().__init__("no card connected")


class IndexOutOfRange(PCSCTesterError, IndexError):
    def __init__(self, index: int, count: int) -> None:
        if count:
            msg = f"reader index {index} out of range (0-{count - 1})"
        else:
            msg = f"reader index {index} out of range (no readers)"
        super().__init__(msg)
        self.index = index
        self.count = count


class ConnectError(PCSCTesterError):
    """Connecting to a reader failed."""

    def __init__(self, reader: str, reason: str = "connect failed") -> None:
        super().__init__(f"{reason}: {reader}")
        self.reader = reader
        self.reason = reason


class NoCard(ConnectError):
    def __init__(self, reader: str) -> None:
        super().__init__(reader, "no card present")


class ReaderNotFound(ConnectError):
    def __init__(self, reader: str) -> None:
        super().__init__(reader, "reader not found")


# --- transport ---


class TransportError(PCSCTesterError):
    """Raised by a transport connection when an exchange fails."""


class CommandFailed(PCSCTesterError):
    """A transport operation failed; the attempt has been recorded in history."""

    label = "Command"

    def __init__(self, reason: str) -> None:
        super().__init__(f"{self.label} failed: {reason}")
        self.reason = reason


class TransmitFailed(CommandFailed):
    label = "Transmit"


class ControlFailed(CommandFailed):
    label = "Control command"


# --- history ---


class MalformedHistory(PCSCTesterError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"malformed history: {reason}")
        self.reason = reason


# --- scripts ---


class UnreadableScript(PCSCTesterError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot read script {path}: {reason}")
        self.path = path
        self.reason = reason
