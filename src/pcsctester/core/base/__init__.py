from pcsctester.core.base.executor import CommandExecutor
from pcsctester.core.base.history import (
    CommandKind,
    CommandRecord,
    Control,
    Statistics,
    Transmit,
)
from pcsctester.core.base.message import (
    ControlMessage,
    ControlOutcome,
    Message,
    Result,
    TransmitMessage,
    TransmitOutcome,
)
from pcsctester.core.base.reader import ReaderSession, SessionState
from pcsctester.core.base.terminal import PCSCTerminal, Terminal

__all__ = [
    "CommandExecutor",
    "CommandKind",
    "CommandRecord",
    "Control",
    "ControlMessage",
    "ControlOutcome",
    "Message",
    "PCSCTerminal",
    "ReaderSession",
    "Result",
    "SessionState",
    "Statistics",
    "Terminal",
    "Transmit",
    "TransmitMessage",
    "TransmitOutcome",
]
