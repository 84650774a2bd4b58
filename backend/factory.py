"""Composition root for backend services."""

from __future__ import annotations

import logging
from functools import lru_cache

from backend.db.postgres_client import PostgresClient, PostgresSettings
from backend.repositories.transactions_repository import (
    InMemoryTransactionsRepository,
    PostgresTransactionsRepository,
    TransactionsRepository,
)
from backend.services.transaction_service import TransactionService
from shared import config


logger = logging.getLogger(__name__)


def build_transactions_repository() -> TransactionsRepository:
    """Build the PostgreSQL repository when configured, else the in-memory fallback."""

    database_url = config.database_url()
    if database_url:
        client = PostgresClient(
            settings=PostgresSettings(
                dsn=database_url,
                min_size=config.database_pool_min_size(),
                max_size=config.database_pool_max_size(),
                command_timeout=config.database_command_timeout(),
            )
        )
        return PostgresTransactionsRepository(
            client,
            auto_create_schema=config.database_auto_create_schema(),
        )

    if not config.is_dev_env():
        logger.warning(
            "transactions_repository_in_memory app_env=%s; define DATABASE_URL to persist data",
            config.app_env(),
        )
    return InMemoryTransactionsRepository()


@lru_cache(maxsize=1)
def get_transaction_service() -> TransactionService:
    """Create and cache the transaction service once per process."""

    service = TransactionService(repository=build_transactions_repository())
    logger.info(
        "using_transactions_repository=%s",
        service.repository.__class__.__name__,
    )
    return service


async def shutdown_transaction_service() -> None:
    """Close store resources and drop the cached service."""

    if get_transaction_service.cache_info().currsize:
        await get_transaction_service().repository.close()
    get_transaction_service.cache_clear()
