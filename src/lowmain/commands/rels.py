"""
Relationship commands: lowmain rel [find|create|delete].
"""

from typing import Dict, Optional

import typer

from .. import actions, cypher
from ..convert import relationship_to_json
from ..error_handling import InvalidParams, QueryFailed, RelationshipNotFound
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

app = typer.Typer(
    name="rel",
    help="Relationship CRUD operations",
    no_args_is_help=True,
)

Overrides = Dict[str, Optional[str]]


async def find_relationships(
    overrides: Overrides,
    from_id: Optional[str] = None,
    to_id: Optional[str] = None,
    rel_type: Optional[str] = None,
    limit: Optional[str] = None,
) -> CommandOutput:
    query = cypher.find_relationships(
        from_id=cypher.parse_id(from_id, "--from") if from_id is not None else None,
        to_id=cypher.parse_id(to_id, "--to") if to_id is not None else None,
        rel_type=rel_type or None,
        limit=cypher.parse_limit(limit),
    )

    async with open_store(overrides) as store:
        records = await store.fetch(query)

    rels = [relationship_to_json(r["r"]) for r in records if "r" in r.keys()]
    return CommandOutput(
        result={"relationships": rels, "count": len(rels)},
        next_actions=actions.for_rel_find(),
    )


async def create_relationship(
    overrides: Overrides,
    from_id: Optional[str],
    to_id: Optional[str],
    rel_type: Optional[str],
    props: Optional[str] = None,
) -> CommandOutput:
    if from_id is None:
        raise InvalidParams("Missing --from. Usage: lowmain rel create --from=1 --to=2 --type=KNOWS")
    if to_id is None:
        raise InvalidParams("Missing --to node ID")
    if not rel_type:
        raise InvalidParams("Missing --type relationship type")
    from_value = cypher.parse_id(from_id, "--from")
    to_value = cypher.parse_id(to_id, "--to")
    properties = cypher.parse_json_object(props, "props") if props is not None else None
    query = cypher.create_relationship(from_value, to_value, rel_type, properties)

    async with open_store(overrides) as store:
        record = await store.fetch_one(query)

    if record is None:
        raise QueryFailed("CREATE did not return a relationship, check that both nodes exist")
    rel = relationship_to_json(record["r"])
    return CommandOutput(
        result={"created": True, "relationship": rel},
        next_actions=actions.for_rel_create(from_value, to_value, rel["_id"]),
    )


async def delete_relationship(overrides: Overrides, rel_id: Optional[str]) -> CommandOutput:
    if rel_id is None:
        raise InvalidParams("Missing relationship ID. Usage: lowmain rel delete <id>")
    id_value = cypher.parse_id(rel_id, "relationship")
    query = cypher.delete_relationship(id_value)

    async with open_store(overrides) as store:
        record = await store.fetch_one(query)

    deleted = record["deleted"] if record is not None else 0
    if not deleted:
        raise RelationshipNotFound(rel_id)
    return CommandOutput(
        result={"deleted": True, "id": id_value},
        next_actions=actions.for_rel_delete(),
    )


@app.command("find")
def find_command(
    from_id: Optional[str] = typer.Option(None, "--from", help="Source node ID"),
    to_id: Optional[str] = typer.Option(None, "--to", help="Target node ID"),
    rel_type: Optional[str] = typer.Option(None, "--type", help="Relationship type"),
    limit: Optional[str] = typer.Option(None, "--limit", help="Maximum relationships to return (default: 100)"),
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Find relationships by type and/or endpoints.

    Usage: lowmain rel find [--from=<id>] [--to=<id>] [--type=<type>] [--limit=<n>]
    """
    overrides = connection_overrides(uri, user, password, db)
    run_command("rel find", find_relationships(overrides, from_id, to_id, rel_type, limit))


@app.command("create")
def create_command(
    from_id: Optional[str] = typer.Option(None, "--from", help="Source node ID"),
    to_id: Optional[str] = typer.Option(None, "--to", help="Target node ID"),
    rel_type: Optional[str] = typer.Option(None, "--type", help="Relationship type"),
    props: Optional[str] = typer.Option(None, "--props", help="Properties as a JSON object"),
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Create a relationship between two nodes.

    Usage: lowmain rel create --from=<id> --to=<id> --type=<type> [--props=<json>]
    """
    overrides = connection_overrides(uri, user, password, db)
    run_command("rel create", create_relationship(overrides, from_id, to_id, rel_type, props))


@app.command("delete")
def delete_command(
    rel_id: Optional[str] = typer.Argument(None, metavar="ID", help="Internal relationship ID"),
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Delete a relationship by ID.

    Usage: lowmain rel delete <id>
    """
    overrides = connection_overrides(uri, user, password, db)
    run_command("rel delete", delete_relationship(overrides, rel_id))
