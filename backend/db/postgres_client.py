"""Minimal asyncpg wrapper used by backend repositories only."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import asyncpg


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PostgresSettings:
    dsn: str
    min_size: int = 1
    max_size: int = 10
    command_timeout: float = 10.0


def parse_affected_rows(status: str) -> int:
    """Return the row count from an asyncpg command tag such as ``UPDATE 1``."""

    try:
        return int(status.rsplit(" ", maxsplit=1)[-1])
    except (AttributeError, ValueError):
        return 0


class PostgresClient:
    """Process-wide connection pool with once-only creation and explicit close."""

    def __init__(self, settings: PostgresSettings) -> None:
        self.settings = settings
        self._pool: asyncpg.Pool | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> asyncpg.Pool:
        if self._pool is not None:
            return self._pool
        async with self._lock:
            if self._pool is None:
                self._pool = await asyncpg.create_pool(
                    dsn=self.settings.dsn,
                    min_size=self.settings.min_size,
                    max_size=self.settings.max_size,
                    command_timeout=self.settings.command_timeout,
                )
                logger.info(
                    "postgres_pool_created min_size=%s max_size=%s",
                    self.settings.min_size,
                    self.settings.max_size,
                )
        return self._pool

    async def close(self) -> None:
        async with self._lock:
            if self._pool is None:
                return
            pool, self._pool = self._pool, None
        await pool.close()
        logger.info("postgres_pool_closed")

    async def fetch(self, query: str, *params: Any) -> list[dict[str, Any]]:
        pool = await self.connect()
        async with pool.acquire() as connection:
            records = await connection.fetch(query, *params)
        return [dict(record) for record in records]

    async def fetch_one(self, query: str, *params: Any) -> dict[str, Any] | None:
        pool = await self.connect()
        async with pool.acquire() as connection:
            record = await connection.fetchrow(query, *params)
        return dict(record) if record is not None else None

    async def execute(self, query: str, *params: Any) -> int:
        """Run a statement and return the number of affected rows."""

        pool = await self.connect()
        async with pool.acquire() as connection:
            status = await connection.execute(query, *params)
        return parse_affected_rows(status)
