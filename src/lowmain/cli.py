#!/usr/bin/env python3
"""
CLI entry point for lowmain.

Every invocation prints exactly one JSON envelope on stdout (success or
classified error, including malformed flags). Logs go to stderr. An
unexpected fault is turned into the fixed PANIC envelope on stderr by the
guard in main().

Usage:
    lowmain ping
    lowmain query "MATCH (n) RETURN n" --limit=10
    lowmain schema
    lowmain node find --label=Person --where=name=Alice
    lowmain node create --label=Person --props='{"name": "Alice"}'
    lowmain rel create --from=1 --to=2 --type=KNOWS
    lowmain --version
"""

import logging
import os
import sys
from typing import List, Optional

import click
import typer

from lowmain import __version__
from lowmain.commands import nodes, rels, schema
from lowmain.commands.common import EXIT_ERROR, EXIT_INTERRUPTED
from lowmain.commands.ping import ping_command
from lowmain.commands.query import query_command
from lowmain.error_handling import InvalidParams, render_error_response, render_panic_response

EXIT_PANIC = 3

LOG_LEVEL_ENV = "LOWMAIN_LOG_LEVEL"

# Create the main app
app = typer.Typer(
    name="lowmain",
    help="Agent-native Neo4j CLI",
    no_args_is_help=True,
    add_completion=False,
    pretty_exceptions_enable=False,
)

app.command("ping")(ping_command)
app.command("query")(query_command)
app.add_typer(schema.app, name="schema")
app.add_typer(nodes.app, name="node")
app.add_typer(rels.app, name="rel")


def setup_logging(verbose: int, quiet: bool):
    """Configure logging based on verbosity flags and LOWMAIN_LOG_LEVEL."""
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose >= 1:
        level = logging.INFO
    else:
        level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "WARNING").upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def version_callback(value: bool):
    """Handle --version flag."""
    if value:
        typer.echo(f"lowmain {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show version and exit"
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase log verbosity (-v, -vv)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
):
    """Agent-native Neo4j CLI: JSON envelopes with next-action suggestions."""
    setup_logging(verbose, quiet)


def _command_path(ctx: Optional[click.Context]) -> Optional[str]:
    """Command path without the program name, e.g. 'node find'."""
    if ctx is None:
        return None
    parts = ctx.command_path.split()[1:]
    return " ".join(parts) or None


def main(args: Optional[List[str]] = None):
    """
    Entry point for the lowmain CLI.

    Click runs in non-standalone mode so malformed flags and unknown options
    come back as exceptions and are answered with an INVALID_PARAMS envelope
    instead of a usage box.
    """
    try:
        exit_code = app(args=args, prog_name="lowmain", standalone_mode=False)
    except click.ClickException as e:
        error = InvalidParams(e.format_message())
        typer.echo(render_error_response(error, _command_path(getattr(e, "ctx", None))).to_json())
        sys.exit(EXIT_ERROR)
    except click.Abort:
        typer.echo("Execution interrupted by user (Ctrl+C)", err=True)
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        typer.echo(render_panic_response(e).to_json(), err=True)
        sys.exit(EXIT_PANIC)
    sys.exit(exit_code or 0)


if __name__ == "__main__":
    main()
