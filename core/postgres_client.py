"""
PostgreSQL Client Wrapper

Thin wrapper around an asyncpg connection pool with the configuration
taken from InfraConfig.

Usage:
    from core.postgres_client import PostgresClientWrapper

    db = PostgresClientWrapper("credit_ledger_service")
    await db.connect()
    rows = await db.query("SELECT * FROM credit_ledger.credits WHERE client_id = $1", [client_id])
"""

import logging
from typing import Any, Dict, List, Optional

import asyncpg

from core.config.infra_config import InfraConfig

logger = logging.getLogger(__name__)


class PostgresClientWrapper:
    """
    PostgreSQL client wrapper.

    Owns one asyncpg pool per service and returns rows as plain dicts.
    """

    def __init__(self, service_name: str, config: Optional[InfraConfig] = None):
        """
        Initialize PostgreSQL client wrapper.

        Args:
            service_name: Name of the service using this client
            config: Infrastructure config (loaded from env if not provided)
        """
        self.service_name = service_name
        self.config = config or InfraConfig.from_env()
        self._pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        """Create the connection pool (idempotent)"""
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(
            dsn=self.config.postgres_dsn,
            min_size=self.config.postgres_min_pool_size,
            max_size=self.config.postgres_max_pool_size,
        )
        logger.info(
            f"PostgreSQL pool ready for {self.service_name}: "
            f"{self.config.postgres_host}:{self.config.postgres_port}/{self.config.postgres_db}"
        )

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError(f"PostgreSQL pool for {self.service_name} is not connected")
        return self._pool

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return all rows"""
        rows = await self.pool.fetch(sql, *(params or []))
        return [dict(row) for row in rows]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return a single row"""
        row = await self.pool.fetchrow(sql, *(params or []))
        return dict(row) if row is not None else None

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        """Execute SQL statement and return the status tag (e.g. 'DELETE 1')"""
        return await self.pool.execute(sql, *(params or []))

    async def close(self):
        """Close the pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")

