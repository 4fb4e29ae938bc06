from __future__ import annotations

import logging

TRACE = 15
PROTOCOL = 18
logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(PROTOCOL, "PROTOCOL")

LINE_BYTES = 16

_GREEN = "\033[32m"
_RED = "\033[31m"
_RESET = "\033[0m"


def _trace(self, message, *args, **kwargs):
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)


logging.Logger.trace = _trace


def color_sw(sw1: int, sw2: int) -> str:
    """Return the status word as colored text: green for 90xx/61xx, red otherwise."""
    color = _GREEN if sw1 in (0x90, 0x61) else _RED
    return f"{color}{sw1:02X}{sw2:02X}{_RESET}"


def log_hex(logger: logging.Logger, prefix: str, data: bytes) -> None:
    """Log hex data at TRACE, wrapping at LINE_BYTES bytes per line."""
    if not logger.isEnabledFor(TRACE):
        return
    if not data:
        logger.trace("%s(empty)", prefix)
        return
    pad = " " * len(prefix)
    for i in range(0, len(data), LINE_BYTES):
        chunk = data[i : i + LINE_BYTES].hex(" ").upper()
        logger.trace("%s%s", prefix if i == 0 else pad, chunk)


def level_for(verbose: bool = False, debug: bool = False) -> int:
    """Pick the root log level for the command line flags."""
    if debug:
        return logging.DEBUG
    if verbose:
        return TRACE
    return PROTOCOL
