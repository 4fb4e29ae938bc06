from pcsctester.core.smartcard.hexutil import (
    format_ascii,
    format_hex,
    format_hex_dump,
    format_hex_spaced,
    parse_control_code,
    parse_hex,
)
from pcsctester.core.smartcard.logging import PROTOCOL, TRACE
from pcsctester.core.smartcard.status import describe_status_word
from pcsctester.core.smartcard.transport import Connection, Context, Transport
from pcsctester.core.smartcard.types import ReaderDescriptor, ShareMode

__all__ = [
    "Connection",
    "Context",
    "PROTOCOL",
    "ReaderDescriptor",
    "ShareMode",
    "TRACE",
    "Transport",
    "describe_status_word",
    "format_ascii",
    "format_hex",
    "format_hex_dump",
    "format_hex_spaced",
    "parse_control_code",
    "parse_hex",
]
