"""Runner — parses command lines and drives a terminal in batch or REPL mode.

The language has two verbs shared by scripts and the REPL::

    transmit <hex apdu>          (alias: t)
    control <code> [hex data]    (alias: c)

Blank lines and lines starting with ``#`` or ``//`` are comments. The REPL
adds session verbs (history, clear, stats, export, import, set, help, quit).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
try:
    import readline
except ImportError:
    readline = None  # type: ignore[assignment]

import click

from pcsctester.app.display import (
    RESPONSE_FORMATS,
    format_control,
    format_history,
    format_statistics,
    format_transmit,
)
from pcsctester.core.base import (
    ControlMessage,
    ControlOutcome,
    Message,
    PCSCTerminal,
    Result,
    TransmitMessage,
    TransmitOutcome,
)
from pcsctester.core.errors import (
    MalformedHistory,
    MissingArgument,
    PCSCTesterError,
    UnknownCommand,
    UnreadableScript,
)
from pcsctester.core.smartcard import format_hex_spaced, parse_control_code

lg = logging.getLogger(__name__)

_ALIASES = {"t": "transmit", "c": "control", "h": "help", "q": "quit"}
_EXIT_COMMANDS = {"quit", "exit"}


def _is_comment(stripped: str) -> bool:
    return not stripped or stripped.startswith("#") or stripped.startswith("//")


def parse_command(line: str) -> Message | None:
    """Parse one line of the command language.

    Returns None for blank and comment lines. Raises UnknownCommand,
    MissingArgument or InvalidControlCode.
    """
    stripped = line.strip()
    if _is_comment(stripped):
        return None
    parts = stripped.split()
    verb = parts[0].lower()
    verb = _ALIASES.get(verb, verb)
    if verb == "transmit":
        if len(parts) < 2:
            raise MissingArgument("transmit", "APDU")
        return TransmitMessage(apdu=" ".join(parts[1:]))
    if verb == "control":
        if len(parts) < 2:
            raise MissingArgument("control", "control code")
        return ControlMessage(code=parse_control_code(parts[1]), data=" ".join(parts[2:]))
    raise UnknownCommand(parts[0])


@dataclass
class LineOutcome:
    """What happened to one executed script line."""

    line_number: int
    text: str
    result: Result | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ScriptResult:
    lines: int = 0
    executed: int = 0
    errors: int = 0
    stopped_at: int | None = None
    outcomes: list[LineOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.errors == 0


class Runner:
    """Holds the terminal and output settings, dispatches commands."""

    def __init__(
        self,
        terminal: PCSCTerminal,
        echo: Callable[[str], None] = click.echo,
        response_format: str = "spaced",
    ) -> None:
        self._terminal = terminal
        self._echo = echo
        self._format = response_format
        self._settings: dict[str, Callable[[str], None]] = {
            "log": self._set_log,
            "format": self._set_format,
        }

        # Build session verb table from cmd_* methods
        self._commands: dict[str, Callable[..., None]] = {}
        self._descriptions: dict[str, str] = {}
        for attr in dir(self):
            if attr.startswith("cmd_"):
                method = getattr(self, attr)
                name = attr[4:]
                self._commands[name] = method
                self._descriptions[name] = (method.__doc__ or "").split("\n")[0].strip()
        self._matches: list[str] = []

    @property
    def terminal(self) -> PCSCTerminal:
        return self._terminal

    # --- Settings ---

    def _set_log(self, value: str) -> None:
        level = logging.getLevelName(value.upper())
        if not isinstance(level, int):
            raise PCSCTesterError(f"unknown log level: {value}")
        logging.getLogger().setLevel(level)
        self._echo(f"log = {value.upper()}")

    def _set_format(self, value: str) -> None:
        if value not in RESPONSE_FORMATS:
            raise PCSCTesterError(f"unknown format: {value} (one of {', '.join(RESPONSE_FORMATS)})")
        self._format = value
        self._echo(f"format = {value}")

    # --- Execution ---

    def execute(self, message: Message) -> Result:
        """Send one parsed command and print its outcome."""
        result = self._terminal.send(message)
        if isinstance(result, TransmitOutcome):
            self._echo(format_transmit(result, self._format))
        elif isinstance(result, ControlOutcome):
            self._echo(format_control(result, self._format))
        return result

    def run_lines(self, lines: Iterable[str], continue_on_error: bool = False) -> ScriptResult:
        """Execute script lines in order against the connected reader."""
        result = ScriptResult()
        for number, line in enumerate(lines, 1):
            result.lines = number
            text = line.strip()
            if _is_comment(text):
                continue
            self._echo(f"Line {number}: {text}")
            outcome = LineOutcome(line_number=number, text=text)
            result.outcomes.append(outcome)
            result.executed += 1
            try:
                message = parse_command(text)
                outcome.result = self._terminal.send(message)
            except PCSCTesterError as exc:
                outcome.error = str(exc)
                result.errors += 1
                self._echo(f"  ERROR: {exc}")
                if not continue_on_error:
                    result.stopped_at = number
                    lg.error("script stopped due to error on line %d", number)
                    return result
            else:
                self._echo(f"  {self._summary(outcome.result)}")
            self._echo("")
        return result

    def run_file(self, path: str | Path, continue_on_error: bool = False) -> ScriptResult:
        """Read and execute commands from a file."""
        try:
            with open(path, encoding="utf-8") as f:
                lines = f.read().splitlines()
        except UnicodeDecodeError as exc:
            raise UnreadableScript(str(path), f"not UTF-8 text ({exc.reason} at byte {exc.start})") from exc
        lg.info("executing script: %s", path)
        return self.run_lines(lines, continue_on_error)

    @staticmethod
    def _summary(result: Result | None) -> str:
        if isinstance(result, TransmitOutcome):
            return f"Response: {format_hex_spaced(result.response)} ({result.duration_ms}ms)"
        if isinstance(result, ControlOutcome):
            return f"Response: {format_hex_spaced(result.output)} ({result.duration_ms}ms)"
        return "OK"

    # --- Session verbs (REPL only) ---

    def cmd_help(self) -> None:
        """Show available commands."""
        lines = [
            "Available commands:",
            f"  {'transmit <apdu>':24s} Send APDU command",
            f"  {'control <code> [data]':24s} Send control command",
        ]
        for name in sorted(self._descriptions):
            lines.append(f"  {name:24s} {self._descriptions[name]}")
        lines.append(f"  {'quit':24s} Exit interactive mode")
        self._echo("\n".join(lines))

    def cmd_history(self, *args: str) -> None:
        """Show command history (history -v for bytes)."""
        detailed = "-v" in args
        self._echo(format_history(self._terminal.executor.history(), detailed))

    def cmd_clear(self) -> None:
        """Clear command history."""
        self._terminal.executor.clear_history()
        self._echo("Command history cleared")

    def cmd_stats(self) -> None:
        """Show command statistics."""
        self._echo(format_statistics(self._terminal.executor.statistics()))

    def cmd_export(self, path: str = "") -> None:
        """Export history as JSON to a file (or print it)."""
        text = self._terminal.executor.export_history()
        if not path:
            self._echo(text)
            return
        Path(path).write_text(text, encoding="utf-8")
        self._echo(f"History exported to {path}")

    def cmd_import(self, path: str = "") -> None:
        """Append history from an exported JSON file."""
        if not path:
            raise MissingArgument("import", "file name")
        try:
            text = Path(path).read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedHistory(f"{path} is not UTF-8 text") from exc
        count = self._terminal.executor.import_history(text)
        self._echo(f"Imported {count} record(s)")

    def cmd_set(self, *args: str) -> None:
        """Set runner configuration (log=LEVEL, format=FMT)."""
        if not args:
            raise MissingArgument("set", "key=value")
        for arg in args:
            key, sep, value = arg.partition("=")
            handler = self._settings.get(key)
            if not sep or handler is None:
                raise PCSCTesterError(f"unknown setting: {arg}")
            handler(value)

    def interact(self, line: str) -> bool:
        """Execute one REPL line. Returns False when the loop should end."""
        stripped = line.strip()
        if _is_comment(stripped):
            return True
        parts = stripped.split()
        verb = parts[0].lower()
        verb = _ALIASES.get(verb, verb)
        if verb in _EXIT_COMMANDS:
            return False
        try:
            cmd = self._commands.get(verb)
            if cmd is not None:
                cmd(*parts[1:])
            else:
                message = parse_command(stripped)
                if message is not None:
                    self.execute(message)
        except UnknownCommand as exc:
            self._echo(f"Unknown command: {exc.token}. Type 'help' for available commands.")
        except TypeError as exc:
            self._echo(f"Error: bad arguments for '{verb}': {exc}")
        except (PCSCTesterError, OSError, UnicodeDecodeError) as exc:
            self._echo(f"Error: {exc}")
        return True

    def _complete(self, text: str, state: int) -> str | None:
        """Readline completer for verbs."""
        if state == 0:
            names = sorted(set(self._commands) | {"transmit", "control", "quit", "exit"})
            self._matches = [n for n in names if n.startswith(text)]
        return self._matches[state] if state < len(self._matches) else None

    def run_interactive(self, read_line: Callable[[str], str] = input, prompt: str = "> ") -> None:
        """Interactive REPL; ends on quit/exit or end of input."""
        if readline is not None and read_line is input:
            readline.set_completer(self._complete)
            readline.set_completer_delims(" ")
            readline.parse_and_bind("tab: complete")
        while True:
            try:
                line = read_line(prompt)
            except (EOFError, KeyboardInterrupt):
                self._echo("")
                break
            if not self.interact(line):
                break
        self._echo("Goodbye!")
