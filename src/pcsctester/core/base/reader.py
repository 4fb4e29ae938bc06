from __future__ import annotations

import enum
import logging
import threading

from pcsctester.core.errors import (
    IndexOutOfRange,
    NotConnected,
    SessionClosed,
)
from pcsctester.core.smartcard.transport import Connection, Context, Transport
from pcsctester.core.smartcard.types import ReaderDescriptor, ShareMode

lg = logging.getLogger(__name__)


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CONNECTED = "connected"
    CLOSED = "closed"


class ReaderSession:
    """Owns the PC/SC context and at most one reader connection.

    Connecting always closes the previous connection first. Every state
    change, and every use of the live handle by the executor, happens
    under ``lock``. Use the session as a context manager so the connection
    is released on every exit path.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._context: Context | None = None
        self._reader_name: str | None = None
        self._handle: Connection | None = None
        self._last_listing: list[ReaderDescriptor] | None = None
        self._closed = False
        self.lock = threading.RLock()

    def __enter__(self) -> ReaderSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- state ---

    @property
    def state(self) -> SessionState:
        if self._closed:
            return SessionState.CLOSED
        if self._context is None:
            return SessionState.UNINITIALIZED
        if self._handle is None:
            return SessionState.READY
        return SessionState.CONNECTED

    @property
    def is_connected(self) -> bool:
        return self._handle is not None

    @property
    def reader_name(self) -> str | None:
        return self._reader_name

    @property
    def active_handle(self) -> Connection | None:
        return self._handle

    def _require_context(self) -> Context:
        if self._closed:
            raise SessionClosed()
        if self._context is None:
            self.establish()
        return self._context

    # --- lifecycle ---

    def establish(self) -> None:
        """Acquire the hardware-access context (Uninitialized -> Ready)."""
        with self.lock:
            if self._closed:
                raise SessionClosed()
            if self._context is not None:
                return
            self._context = self._transport.establish_context()
            lg.debug("PC/SC context established")

    def list_readers(self) -> list[ReaderDescriptor]:
        """Enumerate readers, probing each for a card and its ATR.

        A reader whose probe fails is reported without a card rather than
        failing the whole listing.
        """
        with self.lock:
            context = self._require_context()
            listing = [self._describe(context, name) for name in context.list_reader_names()]
            self._last_listing = listing
            return listing

    def _describe(self, context: Context, name: str) -> ReaderDescriptor:
        if name == self._reader_name and self._handle is not None:
            # never open a second connection to the connected reader
            return self._status_of(name, self._handle)
        try:
            probe = context.connect(name, ShareMode.SHARED)
        except Exception as exc:
            lg.debug("no card on %s: %s", name, exc)
            return ReaderDescriptor(name=name)
        try:
            return self._status_of(name, probe)
        finally:
            try:
                probe.disconnect()
            except Exception as exc:
                lg.debug("probe disconnect failed on %s: %s", name, exc)

    @staticmethod
    def _status_of(name: str, connection: Connection) -> ReaderDescriptor:
        try:
            atr = connection.get_status()
        except Exception as exc:
            lg.debug("status failed on %s: %s", name, exc)
            return ReaderDescriptor(name=name, card_present=True)
        return ReaderDescriptor(name=name, card_present=True, atr=atr)

    def resolve(self, selector: str | int) -> str:
        """Turn an index (int or decimal text) or a literal name into a reader name."""
        if isinstance(selector, str) and not (selector.isascii() and selector.isdigit()):
            return selector
        index = int(selector)
        with self.lock:
            listing = self._last_listing
            if listing is None:
                listing = self.list_readers()
        if not 0 <= index < len(listing):
            raise IndexOutOfRange(index, len(listing))
        return listing[index].name

    def connect(self, selector: str | int, share_mode: ShareMode = ShareMode.SHARED) -> None:
        """Connect to a reader by name or listing index, replacing any current connection."""
        with self.lock:
            context = self._require_context()
            name = self.resolve(selector)
            self.disconnect()
            lg.info("connecting to reader: %s (%s)", name, share_mode)
            self._handle = context.connect(name, share_mode)
            self._reader_name = name
            lg.info("connected to reader: %s", name)

    def disconnect(self) -> None:
        """Close the live connection if any. Never raises."""
        with self.lock:
            handle, self._handle = self._handle, None
            name, self._reader_name = self._reader_name, None
            if handle is None:
                return
            try:
                handle.disconnect()
            except Exception as exc:
                lg.warning("failed to disconnect cleanly from %s: %s", name, exc)
            else:
                lg.info("disconnected from reader: %s", name)

    def close(self) -> None:
        """Disconnect and release the context. The session cannot be reused."""
        with self.lock:
            if self._closed:
                return
            self.disconnect()
            context, self._context = self._context, None
            self._closed = True
            if context is not None:
                try:
                    context.release()
                except Exception as exc:
                    lg.warning("failed to release PC/SC context: %s", exc)

    # --- queries ---

    def require_handle(self) -> Connection:
        handle = self._handle
        if handle is None:
            raise NotConnected()
        return handle

    def current_reader_info(self) -> ReaderDescriptor | None:
        """Fresh status of the connected reader, or None when not connected."""
        with self.lock:
            if self._handle is None or self._reader_name is None:
                return None
            return self._status_of(self._reader_name, self._handle)
