"""Tests for the backend composition root."""

from __future__ import annotations

import asyncio

import pytest

from backend import factory
from backend.repositories.transactions_repository import (
    InMemoryTransactionsRepository,
    PostgresTransactionsRepository,
)


@pytest.fixture(autouse=True)
def _reset_service_cache():
    factory.get_transaction_service.cache_clear()
    yield
    factory.get_transaction_service.cache_clear()


def test_without_database_url_uses_in_memory_repository(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("APP_ENV", "test")

    repository = factory.build_transactions_repository()

    assert isinstance(repository, InMemoryTransactionsRepository)


def test_in_memory_fallback_warns_outside_dev(monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("APP_ENV", "prod")

    factory.build_transactions_repository()

    assert "transactions_repository_in_memory app_env=prod" in caplog.text


def test_database_url_selects_postgres_without_connecting(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/finance")
    monkeypatch.setenv("DATABASE_POOL_MAX_SIZE", "3")
    monkeypatch.setenv("DATABASE_AUTO_CREATE_SCHEMA", "true")

    repository = factory.build_transactions_repository()

    assert isinstance(repository, PostgresTransactionsRepository)
    assert repository._client.settings.dsn == "postgresql://localhost/finance"
    assert repository._client.settings.max_size == 3
    assert repository._client.is_connected is False
    assert repository._auto_create_schema is True


def test_service_is_cached_and_shutdown_clears_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("APP_ENV", "test")

    first = factory.get_transaction_service()
    assert factory.get_transaction_service() is first

    asyncio.run(factory.shutdown_transaction_service())

    assert factory.get_transaction_service() is not first


def test_shutdown_without_cached_service_does_not_build_one() -> None:
    asyncio.run(factory.shutdown_transaction_service())

    assert factory.get_transaction_service.cache_info().currsize == 0
