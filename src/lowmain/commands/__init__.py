"""
lowmain command surface.

Each module owns one command or command group and exposes async handlers
(testable without the CLI) plus the typer commands that drive them.
"""

from . import nodes, ping, query, rels, schema

__all__ = ["nodes", "ping", "query", "rels", "schema"]
