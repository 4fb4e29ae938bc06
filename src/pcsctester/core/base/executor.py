"""Command executor: runs transmit/control against a session and keeps history."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime

from pcsctester.core.base.history import (
    CommandKind,
    CommandRecord,
    Control,
    Statistics,
    Transmit,
    dumps,
    loads,
    utcnow,
)
from pcsctester.core.base.message import ControlOutcome, TransmitOutcome
from pcsctester.core.base.reader import ReaderSession
from pcsctester.core.errors import ControlFailed, EmptyCommand, TransmitFailed
from pcsctester.core.smartcard.hexutil import parse_control_code, parse_hex
from pcsctester.core.smartcard.logging import PROTOCOL, color_sw, log_hex
from pcsctester.core.smartcard.status import split_status_word

lg = logging.getLogger(__name__)


class CommandExecutor:
    """Executes commands against the active connection of a ReaderSession.

    Every transport attempt, successful or not, is appended to the history
    as an immutable CommandRecord. Input that fails to decode is rejected
    before anything is sent or recorded.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._history: list[CommandRecord] = []
        self._lock = threading.Lock()

    def _elapsed_ms(self, start: float) -> int:
        return max(0, int((self._clock() - start) * 1000))

    def _record(self, kind: CommandKind, data: bytes, output: bytes,
                error: str | None, duration_ms: int, timestamp: datetime) -> None:
        self.add_to_history(CommandRecord(
            kind=kind,
            input=data,
            output=output,
            success=error is None,
            error=error,
            duration_ms=duration_ms,
            timestamp=timestamp,
        ))

    # --- commands ---

    def transmit(self, session: ReaderSession, apdu_hex: str) -> TransmitOutcome:
        """Send an APDU (hex text) and return the response split into data and SW."""
        apdu = parse_hex(apdu_hex)
        if not apdu:
            raise EmptyCommand()

        with session.lock:
            handle = session.require_handle()
            log_hex(lg, ">> ", apdu)
            timestamp = utcnow()
            start = self._clock()
            try:
                response = handle.transmit(apdu)
            except Exception as exc:
                duration = self._elapsed_ms(start)
                failure = TransmitFailed(str(exc))
                lg.error("%s", failure)
                self._record(Transmit(), apdu, b"", str(failure), duration, timestamp)
                raise failure from exc
            duration = self._elapsed_ms(start)

        log_hex(lg, "<< ", response)
        sw1, sw2 = split_status_word(response)
        lg.log(PROTOCOL, "TRANSMIT %s -> %s (%dms)", apdu.hex().upper(), color_sw(sw1, sw2), duration)
        self._record(Transmit(), apdu, response, None, duration, timestamp)
        return TransmitOutcome(apdu=apdu, response=response, sw1=sw1, sw2=sw2, duration_ms=duration)

    def control(self, session: ReaderSession, code: int | str, data_hex: str = "") -> ControlOutcome:
        """Send a reader control command. Blank data means no data."""
        if isinstance(code, str):
            code = parse_control_code(code)
        data = parse_hex(data_hex) if data_hex.strip() else b""

        with session.lock:
            handle = session.require_handle()
            log_hex(lg, f">> [{code:X}] ", data)
            timestamp = utcnow()
            start = self._clock()
            try:
                output = handle.control(code, data)
            except Exception as exc:
                duration = self._elapsed_ms(start)
                failure = ControlFailed(str(exc))
                lg.error("%s", failure)
                self._record(Control(code), data, b"", str(failure), duration, timestamp)
                raise failure from exc
            duration = self._elapsed_ms(start)

        log_hex(lg, "<< ", output)
        lg.log(PROTOCOL, "CONTROL 0x%X -> %d bytes (%dms)", code, len(output), duration)
        self._record(Control(code), data, output, None, duration, timestamp)
        return ControlOutcome(code=code, input=data, output=output, duration_ms=duration)

    # --- history ---

    def history(self) -> tuple[CommandRecord, ...]:
        with self._lock:
            return tuple(self._history)

    def add_to_history(self, record: CommandRecord) -> None:
        with self._lock:
            self._history.append(record)

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
        lg.debug("history cleared")

    def export_history(self) -> str:
        with self._lock:
            return dumps(self._history)

    def import_history(self, text: str) -> int:
        """Append records from exported JSON. All or nothing; returns the count added."""
        records = loads(text)
        with self._lock:
            self._history.extend(records)
        lg.debug("imported %d history records", len(records))
        return len(records)

    def statistics(self) -> Statistics:
        with self._lock:
            return Statistics.of(self._history)
