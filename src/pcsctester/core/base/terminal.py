from __future__ import annotations

import logging
from typing import Callable

from pcsctester.core.base.executor import CommandExecutor
from pcsctester.core.base.message import (
    ControlMessage,
    ControlOutcome,
    Message,
    Result,
    TransmitMessage,
    TransmitOutcome,
)
from pcsctester.core.base.reader import ReaderSession
from pcsctester.core.smartcard.types import ReaderDescriptor, ShareMode

lg = logging.getLogger(__name__)


def handles(message_cls: type[Message]) -> Callable:
    """Decorator that registers a method as handler for a message type."""

    def decorator(method: Callable) -> Callable:
        method._handles_message = message_cls
        return method

    return decorator


class Terminal:
    """Binds one ReaderSession to one CommandExecutor.

    The app layer sends Message objects via send() and receives Result
    objects. Subclasses register handlers with the @handles decorator.
    """

    _handlers: dict[type[Message], str]

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        cls._handlers = {}
        for base in reversed(cls.__mro__):
            if hasattr(base, "_handlers"):
                cls._handlers.update(base._handlers)
        for name in vars(cls):
            method = getattr(cls, name)
            if callable(method) and hasattr(method, "_handles_message"):
                cls._handlers[method._handles_message] = name

    def __init__(self, session: ReaderSession, executor: CommandExecutor | None = None) -> None:
        self.session = session
        self.executor = executor if executor is not None else CommandExecutor()

    def list_readers(self) -> list[ReaderDescriptor]:
        return self.session.list_readers()

    def connect(self, reader: str | int, share_mode: ShareMode = ShareMode.SHARED) -> None:
        self.session.connect(reader, share_mode)

    def disconnect(self) -> None:
        self.session.disconnect()

    def send(self, message: Message) -> Result:
        """Dispatch a message to the registered handler."""
        handler_name = self._handlers.get(type(message))
        if handler_name is None:
            raise ValueError(f"unsupported message: {message}")
        return getattr(self, handler_name)(message)

    def on_error(self, error: Exception) -> None:
        """Handle an error during a session."""
        lg.error("terminal error: %s", error)


class PCSCTerminal(Terminal):
    """Terminal for generic PC/SC readers: raw APDUs and control commands."""

    @handles(TransmitMessage)
    def _transmit(self, message: TransmitMessage) -> TransmitOutcome:
        return self.executor.transmit(self.session, message.apdu)

    @handles(ControlMessage)
    def _control(self, message: ControlMessage) -> ControlOutcome:
        return self.executor.control(self.session, message.code, message.data)
