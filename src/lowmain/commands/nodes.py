"""
Node CRUD commands: lowmain node [find|get|create|update|delete].
"""

from typing import Dict, Optional

import typer

from .. import actions, cypher
from ..convert import node_to_json
from ..error_handling import InvalidParams, NodeNotFound, QueryFailed
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
    name="node",
    help="Node CRUD operations",
    no_args_is_help=True,
)

Overrides = Dict[str, Optional[str]]


def _record_node(record, column: str = "n"):
    try:
        return record[column]
    except (KeyError, IndexError) as e:
        raise QueryFailed(f"Result has no column '{column}'") from e


async def find_nodes(
    overrides: Overrides,
    label: Optional[str],
    where: Optional[str] = None,
    limit: Optional[str] = None,
) -> CommandOutput:
    if not label:
        raise InvalidParams("Missing --label. Usage: lowmain node find --label=Person")
    query = cypher.find_nodes(label, where, cypher.parse_limit(limit))

    async with open_store(overrides) as store:
        records = await store.fetch(query)

    nodes = [node_to_json(r["n"]) for r in records if "n" in r.keys()]
    return CommandOutput(
        result={
            "cypher": query.text,
            "nodes": nodes,
            "count": len(nodes),
            "label": label,
        },
        next_actions=actions.for_node_find(label, [n["_id"] for n in nodes]),
    )


async def get_node(overrides: Overrides, node_id: Optional[str]) -> CommandOutput:
    if node_id is None:
        raise InvalidParams("Missing node ID. Usage: lowmain node get <id>")
    id_value = cypher.parse_id(node_id, "node")
    query = cypher.get_node(id_value)

    async with open_store(overrides) as store:
        record = await store.fetch_one(query)

    if record is None:
        raise NodeNotFound(node_id)
    node = node_to_json(_record_node(record))
    return CommandOutput(result={"node": node}, next_actions=actions.for_node_get(id_value))


async def create_node(overrides: Overrides, label: Optional[str], props: Optional[str]) -> CommandOutput:
    if not label:
        raise InvalidParams(
            "Missing --label. Usage: lowmain node create --label=Person --props='{\"name\":\"Alice\"}'"
        )
    if props is None:
        raise InvalidParams("Missing --props. Provide a JSON object of properties")
    query = cypher.create_node(label, cypher.parse_json_object(props, "props"))

    async with open_store(overrides) as store:
        record = await store.fetch_one(query)

    if record is None:
        raise QueryFailed("CREATE did not return a node")
    node = node_to_json(_record_node(record))
    return CommandOutput(
        result={"created": True, "node": node},
        next_actions=actions.for_node_create(node["_id"], label),
    )


async def update_node(overrides: Overrides, node_id: Optional[str], set_props: Optional[str]) -> CommandOutput:
    if node_id is None:
        raise InvalidParams("Missing node ID. Usage: lowmain node update <id> --set='{\"name\":\"Bob\"}'")
    id_value = cypher.parse_id(node_id, "node")
    if set_props is None:
        raise InvalidParams("Missing --set. Provide a JSON object of properties to update")
    query = cypher.update_node(id_value, cypher.parse_json_object(set_props, "set"))

    async with open_store(overrides) as store:
        record = await store.fetch_one(query)

    if record is None:
        raise NodeNotFound(node_id)
    node = node_to_json(_record_node(record))
    return CommandOutput(
        result={"updated": True, "node": node},
        next_actions=actions.for_node_update(id_value),
    )


async def delete_node(overrides: Overrides, node_id: Optional[str], detach: bool = False) -> CommandOutput:
    if node_id is None:
        raise InvalidParams("Missing node ID. Usage: lowmain node delete <id>")
    id_value = cypher.parse_id(node_id, "node")
    query = cypher.delete_node(id_value, detach)

    async with open_store(overrides) as store:
        record = await store.fetch_one(query)

    deleted = record["deleted"] if record is not None else 0
    if not deleted:
        raise NodeNotFound(node_id)
    return CommandOutput(
        result={"deleted": True, "id": id_value, "detach": detach},
        next_actions=actions.for_node_delete(),
    )


@app.command("find")
def find_command(
    label: Optional[str] = typer.Option(None, "--label", help="Node label"),
    where: Optional[str] = typer.Option(None, "--where", help="Equality filter as prop=value"),
    limit: Optional[str] = typer.Option(None, "--limit", help="Maximum nodes to return (default: 100)"),
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Find nodes by label and optional filters.

    Usage: lowmain node find --label=<label> [--where=<prop=val>] [--limit=<n>]
    """
    overrides = connection_overrides(uri, user, password, db)
    run_command("node find", find_nodes(overrides, label, where, limit))


@app.command("get")
def get_command(
    node_id: Optional[str] = typer.Argument(None, metavar="ID", help="Internal node ID"),
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Get a node by internal ID.

    Usage: lowmain node get <id>
    """
    overrides = connection_overrides(uri, user, password, db)
    run_command("node get", get_node(overrides, node_id))


@app.command("create")
def create_command(
    label: Optional[str] = typer.Option(None, "--label", help="Node label"),
    props: Optional[str] = typer.Option(None, "--props", help="Properties as a JSON object"),
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Create a new node.

    Usage: lowmain node create --label=<label> --props=<json>
    """
    overrides = connection_overrides(uri, user, password, db)
    run_command("node create", create_node(overrides, label, props))


@app.command("update")
def update_command(
    node_id: Optional[str] = typer.Argument(None, metavar="ID", help="Internal node ID"),
    set_props: Optional[str] = typer.Option(None, "--set", help="Properties to set as a JSON object"),
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Update a node's properties.

    Usage: lowmain node update <id> --set=<json>
    """
    overrides = connection_overrides(uri, user, password, db)
    run_command("node update", update_node(overrides, node_id, set_props))


@app.command("delete")
def delete_command(
    node_id: Optional[str] = typer.Argument(None, metavar="ID", help="Internal node ID"),
    detach: bool = typer.Option(False, "--detach", help="Also delete the node's relationships"),
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Delete a node by ID.

    Usage: lowmain node delete <id> [--detach]
    """
    overrides = connection_overrides(uri, user, password, db)
    run_command("node delete", delete_node(overrides, node_id, detach))
