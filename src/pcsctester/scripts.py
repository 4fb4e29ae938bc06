# filename : scripts.py
# created  : 10/19/2026


import logging
from functools import wraps

import click

from pcsctester.app.display import RESPONSE_FORMATS
from pcsctester.core.errors import PCSCTesterError
from pcsctester.core.smartcard.logging import level_for
from pcsctester.core.smartcard.types import ShareMode

lg = logging.getLogger(__name__)

_MODES = click.Choice([m.value for m in ShareMode], case_sensitive=False)
_FORMATS = click.Choice(RESPONSE_FORMATS, case_sensitive=False)


def _transport(ctx: click.Context):
    """Return the transport from the context object, or the pyscard one."""
    transport = ctx.obj.get("transport")
    if transport is None:
        from pcsctester.core.smartcard.pcsc import PyscardTransport
        transport = ctx.obj["transport"] = PyscardTransport()
    return transport


def _reports_errors(func):
    """Turn pcsc-tester errors into a clean click error (exit status 1)."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PCSCTesterError as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


@click.group()
@click.version_option(package_name="pcsc-tester")
@click.option("-v", "--verbose", is_flag=True, help="TRACE level (show raw APDUs).")
@click.option("-d", "--debug", is_flag=True, help="DEBUG level logging.")
@click.pass_context
def cli(ctx, verbose, debug):
    """Send APDUs and control commands to PC/SC smart card readers."""
    logging.basicConfig(
        level=level_for(verbose, debug),
        format="%(levelname)-8s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)


@cli.command("list")
@click.option("-l", "--detailed", is_flag=True, help="Show detailed reader status.")
@click.pass_context
@_reports_errors
def list_cmd(ctx, detailed):
    """List available PC/SC readers."""
    from pcsctester.app import session
    session.list_readers(_transport(ctx), detailed)


@cli.command()
@click.argument("reader", envvar="PCSC_TESTER_READER")
@click.argument("apdu")
@click.option("-m", "--mode", type=_MODES, default="shared", show_default=True, help="Connection share mode.")
@click.option("-f", "--format", "fmt", type=_FORMATS, default="spaced", show_default=True, help="Response format.")
@click.pass_context
@_reports_errors
def transmit(ctx, reader, apdu, mode, fmt):
    """Send an APDU (hex) to the card in READER (name or index)."""
    from pcsctester.app import session
    session.transmit(_transport(ctx), reader, apdu, ShareMode.parse(mode), fmt.lower())


@cli.command()
@click.argument("reader", envvar="PCSC_TESTER_READER")
@click.argument("code")
@click.argument("data", default="")
@click.option("-m", "--mode", type=_MODES, default="direct", show_default=True,
              help="Connection share mode (direct for reader control).")
@click.option("-f", "--format", "fmt", type=_FORMATS, default="spaced", show_default=True, help="Response format.")
@click.pass_context
@_reports_errors
def control(ctx, reader, code, data, mode, fmt):
    """Send control CODE (decimal or 0x hex) with optional hex DATA to READER."""
    from pcsctester.app import session
    session.control(_transport(ctx), reader, code, data, ShareMode.parse(mode), fmt.lower())


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("reader", envvar="PCSC_TESTER_READER")
@click.option("-m", "--mode", type=_MODES, default="shared", show_default=True, help="Connection share mode.")
@click.option("-c", "--continue-on-error", is_flag=True, help="Keep going after a failing line.")
@click.pass_context
@_reports_errors
def script(ctx, file, reader, mode, continue_on_error):
    """Execute transmit/control commands from a script FILE."""
    from pcsctester.app import session
    result = session.script(_transport(ctx), file, reader, ShareMode.parse(mode), continue_on_error)
    if result.stopped_at is not None:
        ctx.exit(1)


@cli.command()
@click.argument("reader", required=False, envvar="PCSC_TESTER_READER")
@click.option("-m", "--mode", type=_MODES, default="shared", show_default=True, help="Connection share mode.")
@click.pass_context
@_reports_errors
def interactive(ctx, reader, mode):
    """Interactive mode; prompts for a reader when READER is omitted."""
    from pcsctester.app import session
    session.interactive(_transport(ctx), reader, ShareMode.parse(mode))


@cli.group()
def history():
    """Inspect exported history files."""


@history.command("show")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("-l", "--detailed", is_flag=True, help="Show command and response bytes.")
@_reports_errors
def history_show(file, detailed):
    """List the records of an exported history FILE."""
    from pcsctester.app.display import format_history
    from pcsctester.core.base import CommandExecutor

    executor = CommandExecutor()
    with open(file, encoding="utf-8") as f:
        executor.import_history(f.read())
    click.echo(format_history(executor.history(), detailed))


@history.command("stats")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@_reports_errors
def history_stats(file):
    """Show statistics of an exported history FILE."""
    from pcsctester.app.display import format_statistics
    from pcsctester.core.base import CommandExecutor

    executor = CommandExecutor()
    with open(file, encoding="utf-8") as f:
        executor.import_history(f.read())
    click.echo(format_statistics(executor.statistics()))
