"""
Connectivity check: lowmain ping.
"""

from typing import Dict, Optional

import typer

from .. import actions, cypher
from ..config import connection_info
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


async def ping(overrides: Dict[str, Optional[str]]) -> CommandOutput:
    async with open_store(overrides) as store:
        await store.fetch_one(cypher.ping())

    uri, db = connection_info(overrides)
    return CommandOutput(
        result={"connected": True, "uri": uri, "db": db},
        next_actions=actions.for_ping(),
    )


def ping_command(
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Test Neo4j connection health.

    Usage: lowmain ping [--uri=<uri>] [--user=<user>] [--password=<pw>] [--db=<db>]
    """
    run_command("ping", ping(connection_overrides(uri, user, password, db)))
