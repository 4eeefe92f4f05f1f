"""
Raw Cypher execution: lowmain query <cypher> [--params] [--limit] [--write].

Read mode collects at most --limit rows and reports ``truncated`` when the
cap was reached (collection stopped; more rows may or may not exist).
Write mode runs the statement without collecting rows and never truncates.
"""

from typing import Dict, Optional

import typer

from .. import actions, cypher
from ..convert import rows_to_json
from ..output import CommandOutput
from .common import (
    DbOption,
    PasswordOption,
    UriOption,
    UserOption,
    connection_overrides,
    open_store,
    run_command,
)


async def execute_query(
    overrides: Dict[str, Optional[str]],
    text: Optional[str],
    params: Optional[str] = None,
    limit: Optional[str] = None,
    write: bool = False,
) -> CommandOutput:
    bindings = cypher.parse_json_object(params, "params") if params is not None else {}
    query = cypher.raw_query(text or "", bindings)
    row_limit = cypher.parse_limit(limit)

    if write:
        async with open_store(overrides) as store:
            await store.run(query)
        return CommandOutput(
            result={"executed": True, "cypher": query.text, "mode": "write"},
            next_actions=actions.for_query(write=True),
        )

    async with open_store(overrides) as store:
        records = await store.fetch(query, limit=row_limit)

    rows = rows_to_json(records)
    return CommandOutput(
        result={
            "cypher": query.text,
            "rows": rows,
            "count": len(rows),
            "truncated": len(rows) >= row_limit,
            "limit": row_limit,
        },
        next_actions=actions.for_query(write=False),
    )


def query_command(
    text: Optional[str] = typer.Argument(None, metavar="CYPHER", help="Cypher query to run"),
    params: Optional[str] = typer.Option(None, "--params", help="Query parameters as a JSON object"),
    limit: Optional[str] = typer.Option(None, "--limit", help="Maximum rows to return (default: 100)"),
    write: bool = typer.Option(False, "--write", help="Run as a write statement without collecting rows"),
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Execute a raw Cypher query.

    Usage: lowmain query <cypher> [--params=<json>] [--limit=<n>] [--write]
    """
    overrides = connection_overrides(uri, user, password, db)
    run_command("query", execute_query(overrides, text, params, limit, write))
