"""
Next-action suggestions attached to every lowmain response.

Each successful command returns a short, ordered list of follow-up commands
built from the values it just produced (ids, labels, types). Together they
form a navigable graph of the command surface, so a calling agent can pick
its next step without out-of-band documentation.

Rules:
    - Commands embed concrete values from the result, never placeholders.
    - Values are shell-quoted so every command is valid lowmain input.
    - Inputs the agent must still supply are declared as parameters.
    - Variable-length results contribute at most MAX_ENTITY_ACTIONS entries.

Example:
    >>> [a.command for a in for_node_create(7, "Person")]
    ['lowmain node get 7', 'lowmain rel create --from=7', 'lowmain node find --label=Person']
"""

import shlex
from typing import Any, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from .error_handling import CLI_NAME


MAX_ENTITY_ACTIONS = 5


class ActionParam(BaseModel):
    """Descriptor of an input the suggested command still needs."""

    name: str = Field(..., description="Flag or positional name, e.g. '--props'")
    description: Optional[str] = Field(None, description="What to supply")
    required: bool = Field(False, description="Whether the command fails without it")
    enum: Optional[List[str]] = Field(None, description="Allowed values, when known")


class NextAction(BaseModel):
    """A suggested follow-up command."""

    command: str = Field(..., description="Command line to run")
    description: str = Field(..., description="Human-readable label")
    params: List[ActionParam] = Field(default_factory=list)

    def with_param(
        self,
        name: str,
        description: Optional[str] = None,
        required: bool = False,
        enum: Optional[Sequence[str]] = None,
    ) -> "NextAction":
        self.params.append(
            ActionParam(
                name=name,
                description=description,
                required=required,
                enum=list(enum) if enum is not None else None,
            )
        )
        return self


def command(*parts: Any) -> str:
    return " ".join([CLI_NAME, *(str(p) for p in parts)])


def flag(name: str, value: Any) -> str:
    return f"--{name}={shlex.quote(str(value))}"


def _capped(values: Iterable[Any]) -> List[Any]:
    return list(values)[:MAX_ENTITY_ACTIONS]


# ============================================================
# Shared suggestions
# ============================================================


def explore_schema(description: str = "Explore database structure") -> NextAction:
    return NextAction(command=command("schema"), description=description)


def run_query(description: str = "Execute a Cypher query") -> NextAction:
    return NextAction(command=command("query"), description=description).with_param(
        "cypher", "Cypher query to run", required=True
    )


def find_nodes_by_label() -> NextAction:
    return NextAction(command=command("node", "find"), description="Find nodes by label").with_param(
        "--label", "Node label to search", required=True
    )


def view_relationship_types() -> NextAction:
    return NextAction(command=command("schema", "types"), description="View relationship types")


def create_relationship_from(node_id: int) -> NextAction:
    return (
        NextAction(
            command=command("rel", "create", flag("from", node_id)),
            description="Create relationship from this node",
        )
        .with_param("--to", "Target node ID", required=True)
        .with_param("--type", "Relationship type", required=True)
    )


# ============================================================
# Per-command suggestions
# ============================================================


def for_ping() -> List[NextAction]:
    return [explore_schema(), run_query(), find_nodes_by_label()]


def for_query(write: bool) -> List[NextAction]:
    again = NextAction(command=command("query"), description="Run another query").with_param(
        "cypher", "Cypher query to run", required=True
    )
    if write:
        return [explore_schema("Check schema after mutation"), again]
    return [again, explore_schema()]


def for_node_find(label: str, node_ids: Sequence[int]) -> List[NextAction]:
    actions = [
        NextAction(command=command("node", "get", node_id), description=f"Get node {node_id} details")
        for node_id in _capped(i for i in node_ids if i is not None)
    ]
    actions.append(
        NextAction(
            command=command("node", "create", flag("label", label)),
            description=f"Create a new {label} node",
        ).with_param("--props", "JSON properties", required=True)
    )
    return actions


def for_node_get(node_id: int) -> List[NextAction]:
    return [
        NextAction(command=command("node", "update", node_id), description="Update this node").with_param(
            "--set", "JSON properties to set", required=True
        ),
        NextAction(command=command("node", "delete", node_id), description="Delete this node"),
        NextAction(
            command=command("rel", "find", flag("from", node_id)),
            description="Find outgoing relationships",
        ),
        NextAction(
            command=command("rel", "find", flag("to", node_id)),
            description="Find incoming relationships",
        ),
        create_relationship_from(node_id),
    ]


def for_node_create(node_id: int, label: str) -> List[NextAction]:
    return [
        NextAction(command=command("node", "get", node_id), description="View created node"),
        create_relationship_from(node_id),
        NextAction(
            command=command("node", "find", flag("label", label)),
            description=f"Find all {label} nodes",
        ),
    ]


def for_node_update(node_id: int) -> List[NextAction]:
    return [
        NextAction(command=command("node", "get", node_id), description="View updated node"),
        NextAction(command=command("node", "delete", node_id), description="Delete this node"),
    ]


def for_node_delete() -> List[NextAction]:
    return [
        explore_schema(),
        NextAction(command=command("node", "find"), description="Find nodes").with_param(
            "--label", "Node label", required=True
        ),
    ]


def for_rel_find() -> List[NextAction]:
    return [
        NextAction(command=command("rel", "create"), description="Create a relationship")
        .with_param("--from", "Source node ID", required=True)
        .with_param("--to", "Target node ID", required=True)
        .with_param("--type", "Relationship type", required=True),
        view_relationship_types(),
    ]


def for_rel_create(from_id: int, to_id: int, rel_id: int) -> List[NextAction]:
    return [
        NextAction(command=command("node", "get", from_id), description="View source node"),
        NextAction(command=command("node", "get", to_id), description="View target node"),
        NextAction(command=command("rel", "delete", rel_id), description="Delete this relationship"),
    ]


def for_rel_delete() -> List[NextAction]:
    return [
        NextAction(command=command("rel", "find"), description="Find relationships"),
        view_relationship_types(),
    ]


def for_schema_labels(labels: Sequence[str]) -> List[NextAction]:
    return [
        NextAction(command=command("node", "find", flag("label", label)), description=f"Find {label} nodes")
        for label in _capped(labels)
    ]


def for_schema_types(types: Sequence[str]) -> List[NextAction]:
    return [
        NextAction(
            command=command("rel", "find", flag("type", rel_type)),
            description=f"Find {rel_type} relationships",
        )
        for rel_type in _capped(types)
    ]


def for_schema_indexes() -> List[NextAction]:
    return [NextAction(command=command("schema", "constraints"), description="View constraints")]


def for_schema_constraints() -> List[NextAction]:
    return [NextAction(command=command("schema", "indexes"), description="View indexes")]


def for_schema_count() -> List[NextAction]:
    return [
        NextAction(command=command("schema", "labels"), description="View labels"),
        view_relationship_types(),
    ]


def for_schema_overview(labels: Sequence[str]) -> List[NextAction]:
    actions = for_schema_labels(labels)
    actions.append(
        NextAction(command=command("node", "create"), description="Create a new node")
        .with_param("--label", "Node label", required=True, enum=labels)
        .with_param("--props", "JSON properties", required=True)
    )
    actions.append(run_query())
    return actions
