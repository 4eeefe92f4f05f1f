"""
Normalization of neo4j driver results into JSON.

Nodes and relationships become canonical objects whose metadata keys are
prefixed with an underscore so they never collide with user properties:

    node:          {"_id": 4, "_labels": ["Person"], "name": "Alice"}
    relationship:  {"_id": 9, "_start_node_id": 4, "_end_node_id": 5,
                    "_type": "KNOWS", "since": 2020}

Property values are decoded by trying a fixed sequence of types; the first
decoder that accepts the value wins and anything no decoder accepts becomes
null. Conversion never raises.

Node labels are reported sorted: the driver exposes them as an unordered
set, so sorting is what keeps ``_labels`` stable across runs.

NaN and infinite floats have no JSON representation and become null.
"""

import logging
import math
import warnings
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from neo4j.graph import Node, Path, Relationship

logger = logging.getLogger(__name__)

_NO_MATCH = object()

Decoder = Callable[[Any], Any]


def _as_int(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return _NO_MATCH


def _as_float(value: Any) -> Any:
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    return _NO_MATCH


def _as_bool(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    return _NO_MATCH


def _as_str(value: Any) -> Any:
    if isinstance(value, str):
        return value
    return _NO_MATCH


def _as_str_list(value: Any) -> Any:
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    return _NO_MATCH


def _as_int_list(value: Any) -> Any:
    if isinstance(value, (list, tuple)) and all(_as_int(v) is not _NO_MATCH for v in value):
        return list(value)
    return _NO_MATCH


NODE_DECODERS: Tuple[Decoder, ...] = (
    _as_int,
    _as_float,
    _as_bool,
    _as_str,
    _as_str_list,
    _as_int_list,
)

# Relationship properties never decode as arrays
RELATIONSHIP_DECODERS: Tuple[Decoder, ...] = (_as_int, _as_float, _as_bool, _as_str)


def decode_property(value: Any, decoders: Sequence[Decoder] = NODE_DECODERS) -> Any:
    """Return the first successful decoding of value, or None."""
    for decoder in decoders:
        decoded = decoder(value)
        if decoded is not _NO_MATCH:
            return decoded
    return None


def legacy_id(entity: Any) -> Optional[int]:
    """
    Return the integer id of a node or relationship.

    Uses the driver's deprecated numeric ``id`` when present and otherwise
    the numeric tail of ``element_id`` (``4:<database>:<id>``).
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DeprecationWarning)
        value = getattr(entity, "id", None)
    if isinstance(value, int) and not isinstance(value, bool):
        return value

    element_id = getattr(entity, "element_id", None)
    if isinstance(element_id, str):
        tail = element_id.rsplit(":", 1)[-1]
        if tail.isdigit():
            return int(tail)
    return None


def node_to_json(node: Node) -> Dict[str, Any]:
    """Convert a driver Node into a canonical JSON object."""
    result: Dict[str, Any] = {
        "_id": legacy_id(node),
        "_labels": sorted(node.labels),
    }
    for key, value in node.items():
        result[key] = decode_property(value, NODE_DECODERS)
    return result


def relationship_to_json(rel: Relationship) -> Dict[str, Any]:
    """Convert a driver Relationship into a canonical JSON object."""
    result: Dict[str, Any] = {
        "_id": legacy_id(rel),
        "_start_node_id": legacy_id(rel.start_node),
        "_end_node_id": legacy_id(rel.end_node),
        "_type": rel.type,
    }
    for key, value in rel.items():
        result[key] = decode_property(value, RELATIONSHIP_DECODERS)
    return result


def path_to_json(path: Path) -> Dict[str, Any]:
    return {
        "_type": "path",
        "nodes": [node_to_json(n) for n in path.nodes],
        "relationships": [relationship_to_json(r) for r in path.relationships],
    }


def value_to_json(value: Any) -> Any:
    """
    Structurally convert any driver value into JSON-compatible data.

    Raises:
        TypeError: For values with no JSON representation
    """
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Node):
        return node_to_json(value)
    if isinstance(value, Relationship):
        return relationship_to_json(value)
    if isinstance(value, Path):
        return path_to_json(value)
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, (list, tuple)):
        return [value_to_json(v) for v in value]
    if isinstance(value, dict):
        return {str(k): value_to_json(v) for k, v in value.items()}

    # neo4j.time types and stdlib date/time
    for attr in ("iso_format", "isoformat"):
        formatter = getattr(value, attr, None)
        if callable(formatter):
            return formatter()

    raise TypeError(f"Cannot convert {type(value).__name__} to JSON")


def row_to_json(record: Any) -> Optional[Dict[str, Any]]:
    """
    Convert a result record into a JSON object keyed by column name.

    Any conversion failure yields None for the whole row.
    """
    try:
        return {key: value_to_json(record[key]) for key in record.keys()}
    except Exception as e:
        logger.debug("Row conversion failed: %s", e)
        return None


def rows_to_json(records: List[Any]) -> List[Optional[Dict[str, Any]]]:
    return [row_to_json(r) for r in records]
