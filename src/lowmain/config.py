"""
Connection settings resolution.

Each connection value is resolved once per invocation, in priority order:

    1. Command-line flag (--uri, --user, --password, --db)
    2. Environment variable (NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD, NEO4J_DB)
    3. Built-in default

The password has no default. Its absence raises ConnectionNotConfigured
before any network attempt.

Example:
    >>> config = resolve_connection({"password": "secret"})
    >>> config.uri, config.user, config.database
    ('bolt://localhost:7687', 'neo4j', 'neo4j')
"""

import os
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel, Field, SecretStr

from .error_handling import ConnectionNotConfigured


DEFAULT_URI = "bolt://localhost:7687"
DEFAULT_USER = "neo4j"
DEFAULT_DB = "neo4j"

ENV_URI = "NEO4J_URI"
ENV_USER = "NEO4J_USER"
ENV_PASSWORD = "NEO4J_PASSWORD"
ENV_DB = "NEO4J_DB"


class ConnectionConfig(BaseModel):
    """Resolved connection settings for one invocation."""

    uri: str = Field(DEFAULT_URI, description="Bolt/neo4j URI")
    user: str = Field(DEFAULT_USER, description="Username for basic auth")
    password: SecretStr = Field(..., description="Password for basic auth")
    database: str = Field(DEFAULT_DB, description="Target database name")

    model_config = {"frozen": True}


def _resolve(
    overrides: Mapping[str, Optional[str]],
    environ: Mapping[str, str],
    key: str,
    env_key: str,
    default: Optional[str],
) -> Optional[str]:
    value = overrides.get(key)
    if value:
        return value
    value = environ.get(env_key)
    if value:
        return value
    return default


def resolve_connection(
    overrides: Optional[Mapping[str, Optional[str]]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ConnectionConfig:
    """
    Resolve connection settings from flags, environment and defaults.

    Args:
        overrides: Flag values keyed by uri, user, password, db (None = unset)
        environ: Environment mapping (default: os.environ)

    Returns:
        ConnectionConfig

    Raises:
        ConnectionNotConfigured: If no password is available
    """
    overrides = overrides or {}
    environ = os.environ if environ is None else environ

    password = _resolve(overrides, environ, "password", ENV_PASSWORD, None)
    if password is None:
        raise ConnectionNotConfigured()

    return ConnectionConfig(
        uri=_resolve(overrides, environ, "uri", ENV_URI, DEFAULT_URI),
        user=_resolve(overrides, environ, "user", ENV_USER, DEFAULT_USER),
        password=password,
        database=_resolve(overrides, environ, "db", ENV_DB, DEFAULT_DB),
    )


def connection_info(
    overrides: Optional[Mapping[str, Optional[str]]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[str, str]:
    """Return (uri, database) for display; never requires a password."""
    overrides = overrides or {}
    environ = os.environ if environ is None else environ
    return (
        _resolve(overrides, environ, "uri", ENV_URI, DEFAULT_URI),
        _resolve(overrides, environ, "db", ENV_DB, DEFAULT_DB),
    )
