"""
Cypher query compilation for lowmain commands.

Turns structured command input into parameterized Cypher. Two rules hold
for every query built here:

    - Structural identifiers (labels, relationship types, property keys) are
      embedded as text, wrapped in backticks with embedded backticks doubled.
      Cypher has no parameter slot for identifiers.
    - Every value (property values, filter values, ids) is bound as a named
      parameter and never concatenated into the query text.

Example:
    >>> q = create_node("Person", {"name": "Alice", "age": 30})
    >>> q.text
    'CREATE (n:`Person`) SET n.`name` = $prop_0, n.`age` = $prop_1 RETURN n'
    >>> q.params
    {'prop_0': 'Alice', 'prop_1': 30}
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .error_handling import InvalidParams


DEFAULT_LIMIT = 100

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class CompiledQuery:
    """Query text plus its parameter bindings."""

    text: str
    params: Dict[str, Any] = field(default_factory=dict)


# ============================================================
# Identifiers and parameters
# ============================================================


def quote_identifier(name: str) -> str:
    """
    Quote a label, relationship type or property key for embedding in Cypher.

    Raises:
        InvalidParams: If the identifier is empty
    """
    if not name:
        raise InvalidParams("Identifier must not be empty")
    return "`" + str(name).replace("`", "``") + "`"


def infer_param(value: Any) -> Any:
    """
    Convert a decoded JSON value into a typed query parameter.

    string -> str; number with an exact 64-bit integer representation -> int;
    other number -> float; boolean -> bool; anything else (null, object,
    array) -> its JSON text as str.
    """
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        if _INT64_MIN <= value <= _INT64_MAX:
            return value
        return float(value)
    if isinstance(value, float):
        return value
    return json.dumps(value)


def infer_params(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Apply infer_param to every value of a JSON object."""
    return {key: infer_param(val) for key, val in values.items()}


def parse_json_object(text: Optional[str], flag: str) -> Dict[str, Any]:
    """
    Parse a JSON object flag value such as --props, --set or --params.

    Raises:
        InvalidParams: On malformed JSON or a non-object value
    """
    if text is None:
        raise InvalidParams(f"Missing --{flag}. Provide a JSON object")
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidParams(f"Invalid --{flag} JSON: {e}")
    if not isinstance(value, dict):
        raise InvalidParams(
            f"Invalid --{flag} JSON: expected an object, got {type(value).__name__}"
        )
    return value


def parse_id(text: Optional[str], what: str = "node") -> int:
    """Parse an internal id from a positional argument or flag value."""
    if text is None or text == "":
        raise InvalidParams(f"Missing {what} ID")
    try:
        return int(text)
    except ValueError:
        raise InvalidParams(f"Invalid {what} ID: {text}")


def parse_limit(text: Optional[str]) -> int:
    """Parse --limit; absent means DEFAULT_LIMIT."""
    if text is None or text == "":
        return DEFAULT_LIMIT
    try:
        limit = int(text)
    except ValueError:
        raise InvalidParams(f"Invalid --limit: {text}. Expected a non-negative integer")
    if limit < 0:
        raise InvalidParams(f"Invalid --limit: {text}. Expected a non-negative integer")
    return limit


def _set_clause(variable: str, props: Mapping[str, Any]) -> Tuple[str, Dict[str, Any]]:
    assignments: List[str] = []
    params: Dict[str, Any] = {}
    for index, (key, value) in enumerate(props.items()):
        name = f"prop_{index}"
        assignments.append(f"{variable}.{quote_identifier(key)} = ${name}")
        params[name] = infer_param(value)
    return ", ".join(assignments), params


# ============================================================
# Connectivity
# ============================================================


def ping() -> CompiledQuery:
    return CompiledQuery("RETURN 1 AS ok")


# ============================================================
# Nodes
# ============================================================


def find_nodes(label: str, where: Optional[str] = None, limit: int = DEFAULT_LIMIT) -> CompiledQuery:
    """
    Find nodes by label with an optional single ``prop=value`` equality filter.

    The filter splits on the first ``=``; the value is bound as a string.
    """
    pattern = f"MATCH (n:{quote_identifier(label)})"
    if where is None:
        return CompiledQuery(f"{pattern} RETURN n LIMIT {limit}")

    prop, sep, value = where.partition("=")
    if not sep:
        raise InvalidParams("Invalid --where format. Use prop=value")
    return CompiledQuery(
        f"{pattern} WHERE n.{quote_identifier(prop)} = $val RETURN n LIMIT {limit}",
        {"val": value},
    )


def get_node(node_id: int) -> CompiledQuery:
    # Accept either addressing scheme: legacy integer id or element id
    return CompiledQuery(
        "MATCH (n) WHERE elementId(n) = toString($id) OR id(n) = $id RETURN n",
        {"id": node_id},
    )


def create_node(label: str, props: Mapping[str, Any]) -> CompiledQuery:
    pattern = f"CREATE (n:{quote_identifier(label)})"
    clause, params = _set_clause("n", props)
    if not clause:
        return CompiledQuery(f"{pattern} RETURN n")
    return CompiledQuery(f"{pattern} SET {clause} RETURN n", params)


def update_node(node_id: int, props: Mapping[str, Any]) -> CompiledQuery:
    if not props:
        raise InvalidParams("--set must contain at least one property")
    clause, params = _set_clause("n", props)
    params["id"] = node_id
    return CompiledQuery(f"MATCH (n) WHERE id(n) = $id SET {clause} RETURN n", params)


def delete_node(node_id: int, detach: bool = False) -> CompiledQuery:
    verb = "DETACH DELETE" if detach else "DELETE"
    return CompiledQuery(
        f"MATCH (n) WHERE id(n) = $id {verb} n RETURN count(n) AS deleted",
        {"id": node_id},
    )


# ============================================================
# Relationships
# ============================================================


def find_relationships(
    from_id: Optional[int] = None,
    to_id: Optional[int] = None,
    rel_type: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
) -> CompiledQuery:
    """Find relationships, filtered by any combination of endpoints and type."""
    rel_pattern = f"[r:{quote_identifier(rel_type)}]" if rel_type else "[r]"

    conditions: List[str] = []
    params: Dict[str, Any] = {}
    if from_id is not None:
        conditions.append("id(a) = $from_id")
        params["from_id"] = from_id
    if to_id is not None:
        conditions.append("id(b) = $to_id")
        params["to_id"] = to_id

    where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
    return CompiledQuery(
        f"MATCH (a)-{rel_pattern}->(b){where} "
        f"RETURN r, id(a) AS from_id, id(b) AS to_id LIMIT {limit}",
        params,
    )


def create_relationship(
    from_id: int,
    to_id: int,
    rel_type: str,
    props: Optional[Mapping[str, Any]] = None,
) -> CompiledQuery:
    """
    Create a relationship between two existing nodes.

    Endpoint existence is left to the store: when either node is missing the
    MATCH yields nothing and no row comes back.
    """
    clause, params = _set_clause("r", props or {})
    params["from_id"] = from_id
    params["to_id"] = to_id
    text = (
        "MATCH (a), (b) WHERE id(a) = $from_id AND id(b) = $to_id "
        f"CREATE (a)-[r:{quote_identifier(rel_type)}]->(b)"
    )
    if clause:
        text += f" SET {clause}"
    return CompiledQuery(f"{text} RETURN r", params)


def delete_relationship(rel_id: int) -> CompiledQuery:
    return CompiledQuery(
        "MATCH ()-[r]->() WHERE id(r) = $id DELETE r RETURN count(r) AS deleted",
        {"id": rel_id},
    )


# ============================================================
# Raw queries
# ============================================================


def raw_query(text: str, params: Optional[Mapping[str, Any]] = None) -> CompiledQuery:
    if not text or not text.strip():
        raise InvalidParams('Missing Cypher query. Usage: lowmain query "MATCH (n) RETURN n"')
    return CompiledQuery(text, infer_params(params or {}))


# ============================================================
# Schema introspection
# ============================================================

LABELS = CompiledQuery("CALL db.labels() YIELD label RETURN label ORDER BY label")
RELATIONSHIP_TYPES = CompiledQuery(
    "CALL db.relationshipTypes() YIELD relationshipType "
    "RETURN relationshipType ORDER BY relationshipType"
)
INDEXES = CompiledQuery("SHOW INDEXES YIELD name, type, labelsOrTypes, properties, state")
CONSTRAINTS = CompiledQuery("SHOW CONSTRAINTS YIELD name, type, labelsOrTypes, properties")
NODE_COUNT = CompiledQuery("MATCH (n) RETURN count(n) AS node_count")
RELATIONSHIP_COUNT = CompiledQuery("MATCH ()-[r]->() RETURN count(r) AS rel_count")
