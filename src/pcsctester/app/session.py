"""Session orchestrators.

Each function constructs the full stack (Transport -> ReaderSession ->
CommandExecutor -> PCSCTerminal -> Runner), connects, runs one mode and
releases the reader on every exit path.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

import click

from pcsctester.app.display import (
    format_control,
    format_reader_list,
    format_transmit,
)
from pcsctester.app.runner import Runner, ScriptResult
from pcsctester.core.base import (
    CommandExecutor,
    ControlMessage,
    ControlOutcome,
    PCSCTerminal,
    ReaderSession,
    TransmitMessage,
    TransmitOutcome,
)
from pcsctester.core.errors import IndexOutOfRange, PCSCTesterError
from pcsctester.core.smartcard import ReaderDescriptor, ShareMode, Transport

lg = logging.getLogger(__name__)

Echo = Callable[[str], None]


def list_readers(transport: Transport, detailed: bool = False, echo: Echo = click.echo) -> list[ReaderDescriptor]:
    """Print the available readers."""
    with ReaderSession(transport) as session:
        session.establish()
        readers = session.list_readers()
    echo(format_reader_list(readers, detailed))
    return readers


def transmit(
    transport: Transport,
    reader: str,
    apdu: str,
    mode: ShareMode = ShareMode.SHARED,
    fmt: str = "spaced",
    echo: Echo = click.echo,
) -> TransmitOutcome:
    """Send one APDU and print the response with its status word."""
    with ReaderSession(transport) as session:
        terminal = PCSCTerminal(session)
        terminal.connect(reader, mode)
        result = terminal.send(TransmitMessage(apdu=apdu))
    echo(format_transmit(result, fmt, show_apdu=True))
    return result


def control(
    transport: Transport,
    reader: str,
    code: str,
    data: str = "",
    mode: ShareMode = ShareMode.DIRECT,
    fmt: str = "spaced",
    echo: Echo = click.echo,
) -> ControlOutcome:
    """Send one control command and print the reader's answer."""
    with ReaderSession(transport) as session:
        terminal = PCSCTerminal(session)
        terminal.connect(reader, mode)
        result = terminal.send(ControlMessage(code=code, data=data))
    echo(format_control(result, fmt, show_code=True))
    return result


def script(
    transport: Transport,
    path: str | Path,
    reader: str,
    mode: ShareMode = ShareMode.SHARED,
    continue_on_error: bool = False,
    echo: Echo = click.echo,
) -> ScriptResult:
    """Run a script file against one connection."""
    with ReaderSession(transport) as session:
        terminal = PCSCTerminal(session)
        terminal.connect(reader, mode)
        echo(f"Executing script: {path}")
        echo(f"Reader: {session.reader_name}")
        echo("")
        runner = Runner(terminal, echo=echo)
        result = runner.run_file(path, continue_on_error)

    if result.stopped_at is not None:
        echo(f"Script execution stopped due to error on line {result.stopped_at}")
    else:
        echo("Script execution completed.")
    echo(f"Total lines processed: {result.lines}")
    if result.errors:
        echo(f"Errors encountered: {result.errors}")
    return result


def _prompt_index(text: str) -> int:
    return click.prompt(text, type=int)


def choose_reader(readers: Sequence[ReaderDescriptor], ask: Callable[[str], int], echo: Echo = click.echo) -> str:
    """Let the operator pick a reader from a listing."""
    if not readers:
        raise PCSCTesterError("no PCSC readers found")
    echo("Available readers:")
    for i, r in enumerate(readers):
        echo(f"  [{i}] {r.name}{' [CARD]' if r.card_present else ''}")
    index = ask(f"Select reader [0-{len(readers) - 1}]")
    if not 0 <= index < len(readers):
        raise IndexOutOfRange(index, len(readers))
    return readers[index].name


def interactive(
    transport: Transport,
    reader: str | None = None,
    mode: ShareMode = ShareMode.SHARED,
    echo: Echo = click.echo,
    read_line: Callable[[str], str] = input,
    ask: Callable[[str], int] | None = None,
    executor: CommandExecutor | None = None,
) -> CommandExecutor:
    """Interactive REPL. Returns the executor so callers can keep its history."""
    with ReaderSession(transport) as session:
        terminal = PCSCTerminal(session, executor)
        if reader is None:
            reader = choose_reader(session.list_readers(), ask or _prompt_index, echo)
        terminal.connect(reader, mode)

        echo("PCSC Tester - Interactive Mode")
        echo(f"Connected to: {session.reader_name}")
        echo("Commands: transmit <apdu>, control <code> [data], history, clear, help, quit")
        echo("")
        runner = Runner(terminal, echo=echo)
        try:
            runner.run_interactive(read_line)
        except Exception as exc:
            terminal.on_error(exc)
            raise
    return terminal.executor
