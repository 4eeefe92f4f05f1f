"""
Schema introspection: lowmain schema [labels|types|indexes|constraints|count].

Without a subcommand, prints an overview of labels, relationship types,
indexes and constraints. All queries are fixed and parameterless.
"""

from typing import Any, Dict, List, Optional

import typer

from .. import actions, cypher
from ..convert import rows_to_json
from ..output import CommandOutput
from ..store import GraphStore
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
    name="schema",
    help="Introspect database structure",
)

Overrides = Dict[str, Optional[str]]


async def fetch_labels(store: GraphStore) -> List[str]:
    records = await store.fetch(cypher.LABELS)
    return [r.get("label") for r in records if isinstance(r.get("label"), str)]


async def fetch_relationship_types(store: GraphStore) -> List[str]:
    records = await store.fetch(cypher.RELATIONSHIP_TYPES)
    return [r.get("relationshipType") for r in records if isinstance(r.get("relationshipType"), str)]


async def fetch_indexes(store: GraphStore) -> List[Any]:
    return rows_to_json(await store.fetch(cypher.INDEXES))


async def fetch_constraints(store: GraphStore) -> List[Any]:
    return rows_to_json(await store.fetch(cypher.CONSTRAINTS))


async def _fetch_count(store: GraphStore, query: cypher.CompiledQuery, column: str) -> int:
    record = await store.fetch_one(query)
    if record is None:
        return 0
    return record.get(column) or 0


async def schema_overview(overrides: Overrides) -> CommandOutput:
    async with open_store(overrides) as store:
        labels = await fetch_labels(store)
        types = await fetch_relationship_types(store)
        indexes = await fetch_indexes(store)
        constraints = await fetch_constraints(store)

    return CommandOutput(
        result={
            "labels": labels,
            "relationship_types": types,
            "indexes": indexes,
            "constraints": constraints,
        },
        next_actions=actions.for_schema_overview(labels),
    )


async def schema_labels(overrides: Overrides) -> CommandOutput:
    async with open_store(overrides) as store:
        labels = await fetch_labels(store)
    return CommandOutput(result={"labels": labels}, next_actions=actions.for_schema_labels(labels))


async def schema_types(overrides: Overrides) -> CommandOutput:
    async with open_store(overrides) as store:
        types = await fetch_relationship_types(store)
    return CommandOutput(
        result={"relationship_types": types},
        next_actions=actions.for_schema_types(types),
    )


async def schema_indexes(overrides: Overrides) -> CommandOutput:
    async with open_store(overrides) as store:
        indexes = await fetch_indexes(store)
    return CommandOutput(result={"indexes": indexes}, next_actions=actions.for_schema_indexes())


async def schema_constraints(overrides: Overrides) -> CommandOutput:
    async with open_store(overrides) as store:
        constraints = await fetch_constraints(store)
    return CommandOutput(
        result={"constraints": constraints},
        next_actions=actions.for_schema_constraints(),
    )


async def schema_count(overrides: Overrides) -> CommandOutput:
    # Two independent queries; their scalars are merged
    async with open_store(overrides) as store:
        node_count = await _fetch_count(store, cypher.NODE_COUNT, "node_count")
        rel_count = await _fetch_count(store, cypher.RELATIONSHIP_COUNT, "rel_count")
    return CommandOutput(
        result={"node_count": node_count, "relationship_count": rel_count},
        next_actions=actions.for_schema_count(),
    )


def _overrides(ctx: typer.Context, uri, user, password, db) -> Overrides:
    """Merge subcommand flags over flags given to `lowmain schema` itself."""
    inherited = ctx.obj if isinstance(ctx.obj, dict) else {}
    own = connection_overrides(uri, user, password, db)
    return {key: own[key] or inherited.get(key) for key in own}


@app.callback(invoke_without_command=True)
def schema_callback(
    ctx: typer.Context,
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """
    Introspect database structure.

    Usage: lowmain schema [labels|types|indexes|constraints|count]
    """
    overrides = connection_overrides(uri, user, password, db)
    if ctx.invoked_subcommand is not None:
        ctx.obj = overrides
        return
    run_command("schema", schema_overview(overrides))


@app.command("labels")
def labels_command(
    ctx: typer.Context,
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """List all node labels."""
    run_command("schema labels", schema_labels(_overrides(ctx, uri, user, password, db)))


@app.command("types")
def types_command(
    ctx: typer.Context,
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """List all relationship types."""
    run_command("schema types", schema_types(_overrides(ctx, uri, user, password, db)))


@app.command("indexes")
def indexes_command(
    ctx: typer.Context,
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """List all indexes."""
    run_command("schema indexes", schema_indexes(_overrides(ctx, uri, user, password, db)))


@app.command("constraints")
def constraints_command(
    ctx: typer.Context,
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """List all constraints."""
    run_command("schema constraints", schema_constraints(_overrides(ctx, uri, user, password, db)))


@app.command("count")
def count_command(
    ctx: typer.Context,
    uri: Optional[str] = UriOption,
    user: Optional[str] = UserOption,
    password: Optional[str] = PasswordOption,
    db: Optional[str] = DbOption,
):
    """Count nodes and relationships."""
    run_command("schema count", schema_count(_overrides(ctx, uri, user, password, db)))
