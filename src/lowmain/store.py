"""
Async Neo4j store handle.

Thin wrapper over the official neo4j driver's async API. It is the single
place where driver exceptions cross into lowmain: every failure is passed
through classify_error() exactly once and re-raised as a LowmainError.

One handle lives for one invocation; there is no pooling and no retry.

Example:
    >>> async def main(config):
    ...     async with await GraphStore.connect(config) as store:
    ...         records = await store.fetch(cypher.ping())
"""

import logging
from typing import Any, List, Optional

from neo4j import AsyncGraphDatabase, basic_auth

from .config import ConnectionConfig
from .cypher import CompiledQuery
from .error_handling import ConnectionFailed, classify_error

logger = logging.getLogger(__name__)


class GraphStore:
    """Connected handle to one Neo4j database."""

    def __init__(self, driver: Any, database: str):
        self._driver = driver
        self._database = database

    @classmethod
    async def connect(cls, config: ConnectionConfig) -> "GraphStore":
        """
        Open a driver for config and verify the server is reachable.

        Raises:
            ConnectionFailed: If the driver cannot be configured
            LowmainError: Classified failure of the connectivity check
        """
        logger.info("Connecting to %s (database: %s)", config.uri, config.database)
        try:
            driver = AsyncGraphDatabase.driver(
                config.uri,
                auth=basic_auth(config.user, config.password.get_secret_value()),
            )
        except Exception as e:
            raise ConnectionFailed(str(e)) from e

        try:
            await driver.verify_connectivity()
        except Exception as e:
            await driver.close()
            raise classify_error(e) from e

        return cls(driver, config.database)

    @property
    def database(self) -> str:
        return self._database

    async def fetch(self, query: CompiledQuery, limit: Optional[int] = None) -> List[Any]:
        """
        Execute a query and collect its records.

        Args:
            query: Compiled query
            limit: Stop collecting after this many records (None = all)

        Returns:
            List of neo4j Record objects
        """
        logger.debug("Executing: %s", query.text)
        records: List[Any] = []
        try:
            async with self._driver.session(database=self._database) as session:
                result = await session.run(query.text, query.params)
                async for record in result:
                    if limit is not None and len(records) >= limit:
                        break
                    records.append(record)
        except Exception as e:
            raise classify_error(e) from e
        logger.debug("Fetched %d record(s)", len(records))
        return records

    async def fetch_one(self, query: CompiledQuery) -> Optional[Any]:
        """Execute a query and return its first record, or None."""
        records = await self.fetch(query, limit=1)
        return records[0] if records else None

    async def run(self, query: CompiledQuery) -> None:
        """Execute a query for its side effects; rows are discarded."""
        logger.debug("Running: %s", query.text)
        try:
            async with self._driver.session(database=self._database) as session:
                result = await session.run(query.text, query.params)
                await result.consume()
        except Exception as e:
            raise classify_error(e) from e

    async def close(self) -> None:
        await self._driver.close()

    async def __aenter__(self) -> "GraphStore":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False

    def __repr__(self) -> str:
        return f"GraphStore(database={self._database!r})"
