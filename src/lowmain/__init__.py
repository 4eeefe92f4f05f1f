"""
lowmain: agent-native Neo4j CLI.

Exposes node/relationship CRUD, raw Cypher and schema introspection as
single JSON envelopes with next-action suggestions for calling agents.
"""

__version__ = "0.3.0"

from .config import ConnectionConfig, resolve_connection
from .cypher import CompiledQuery
from .error_handling import LowmainError, classify_error
from .output import CommandOutput, SuccessEnvelope
from .actions import ActionParam, NextAction

__all__ = [
    "__version__",
    "ConnectionConfig",
    "resolve_connection",
    "CompiledQuery",
    "LowmainError",
    "classify_error",
    "CommandOutput",
    "SuccessEnvelope",
    "ActionParam",
    "NextAction",
]
