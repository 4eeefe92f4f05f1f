"""
Shared plumbing for lowmain commands.

Every command follows the same pipeline: validate input (fail fast, no
network), resolve the connection, open a store, run compiled queries,
normalize results, attach next actions. run_command() drives the coroutine
and prints exactly one JSON envelope on stdout.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Dict, Optional

import typer

from ..config import resolve_connection
from ..error_handling import LowmainError, render_error_response
from ..output import CommandOutput, SuccessEnvelope
from ..store import GraphStore

logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

# Connection options shared by every command
UriOption = typer.Option(None, "--uri", help="Neo4j URI (env: NEO4J_URI, default: bolt://localhost:7687)")
UserOption = typer.Option(None, "--user", help="Neo4j user (env: NEO4J_USER, default: neo4j)")
PasswordOption = typer.Option(None, "--password", help="Neo4j password (env: NEO4J_PASSWORD, required)")
DbOption = typer.Option(None, "--db", help="Database name (env: NEO4J_DB, default: neo4j)")


def connection_overrides(
    uri: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    db: Optional[str] = None,
) -> Dict[str, Optional[str]]:
    return {"uri": uri, "user": user, "password": password, "db": db}


@asynccontextmanager
async def open_store(overrides: Dict[str, Optional[str]]) -> AsyncIterator[GraphStore]:
    """Resolve the connection and yield a store closed on exit."""
    config = resolve_connection(overrides)
    store = await GraphStore.connect(config)
    try:
        yield store
    finally:
        await store.close()


def run_command(command_path: str, work: Awaitable[CommandOutput]) -> None:
    """
    Run a command coroutine and print its envelope.

    Classified errors print an error envelope and exit with EXIT_ERROR. Any
    other exception propagates to the top-level guard in cli.main().
    """
    try:
        output = asyncio.run(work)
    except LowmainError as e:
        logger.info("%s failed: %s (%s)", command_path, e.message, e.code)
        typer.echo(render_error_response(e, command_path).to_json())
        raise typer.Exit(EXIT_ERROR)
    except KeyboardInterrupt:
        typer.echo("Execution interrupted by user (Ctrl+C)", err=True)
        raise typer.Exit(EXIT_INTERRUPTED)

    typer.echo(SuccessEnvelope.from_output(output, command_path).to_json())
