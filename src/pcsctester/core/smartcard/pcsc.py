"""PC/SC transport on top of pyscard."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from smartcard.Exceptions import (
    NoCardException,
    SmartcardException,
)
from smartcard.pcsc.PCSCExceptions import BaseSCardException
from smartcard.scard import (
    SCARD_LEAVE_CARD,
    SCARD_SHARE_DIRECT,
    SCARD_SHARE_EXCLUSIVE,
    SCARD_SHARE_SHARED,
)
from smartcard.System import readers

from pcsctester.core.errors import (
    ConnectError,
    NoCard,
    ReaderNotFound,
    ServiceUnavailable,
    TransportError,
)
from pcsctester.core.smartcard.logging import PROTOCOL
from pcsctester.core.smartcard.types import ShareMode

if TYPE_CHECKING:
    from smartcard.CardConnection import CardConnection
    from smartcard.reader.Reader import Reader

lg = logging.getLogger(__name__)

_SHARE_MODES = {
    ShareMode.SHARED: SCARD_SHARE_SHARED,
    ShareMode.EXCLUSIVE: SCARD_SHARE_EXCLUSIVE,
    ShareMode.DIRECT: SCARD_SHARE_DIRECT,
}

_PCSC_ERRORS = (SmartcardException, BaseSCardException)


class PyscardConnection:
    """Wrapper around a pyscard CardConnection."""

    def __init__(self, name: str, connection: CardConnection) -> None:
        self._name = name
        self._connection = connection

    def transmit(self, apdu: bytes) -> bytes:
        try:
            data, sw1, sw2 = self._connection.transmit(list(apdu))
        except _PCSC_ERRORS as exc:
            raise TransportError(str(exc)) from exc
        return bytes(data) + bytes([sw1, sw2])

    def control(self, code: int, data: bytes) -> bytes:
        try:
            response = self._connection.control(code, list(data))
        except _PCSC_ERRORS as exc:
            raise TransportError(str(exc)) from exc
        return bytes(response)

    def get_status(self) -> bytes:
        try:
            return bytes(self._connection.getATR())
        except _PCSC_ERRORS as exc:
            raise TransportError(str(exc)) from exc

    def disconnect(self) -> None:
        """Leave the card in place and release the PC/SC context of this connection."""
        try:
            self._connection.disconnect()
            self._connection.release()
        except _PCSC_ERRORS as exc:
            raise TransportError(str(exc)) from exc
        lg.log(PROTOCOL, "disconnect %s", self._name)


class PyscardContext:
    def _readers(self) -> list[Reader]:
        try:
            return readers()
        except _PCSC_ERRORS as exc:
            raise ServiceUnavailable(f"failed to list readers: {exc}") from exc

    def list_reader_names(self) -> list[str]:
        return [str(r) for r in self._readers()]

    def connect(self, name: str, share_mode: ShareMode) -> PyscardConnection:
        for reader in self._readers():
            if str(reader) == name:
                break
        else:
            raise ReaderNotFound(name)

        connection = reader.createConnection()
        try:
            connection.connect(mode=_SHARE_MODES[share_mode], disposition=SCARD_LEAVE_CARD)
        except NoCardException as exc:
            raise NoCard(name) from exc
        except _PCSC_ERRORS as exc:
            raise ConnectError(name, f"failed to connect ({exc})") from exc
        lg.log(PROTOCOL, "connect %s (%s)", name, share_mode)
        return PyscardConnection(name, connection)

    def release(self) -> None:
        """Nothing to do: each connection releases its own context on disconnect."""


class PyscardTransport:
    """Transport backed by the platform PC/SC service (pcsc-lite, WinSCard)."""

    def establish_context(self) -> PyscardContext:
        context = PyscardContext()
        # readers() establishes the PC/SC context; fail early if the service is down
        context.list_reader_names()
        return context
