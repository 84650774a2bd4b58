"""Transactions repository adapters.

Every read and write is scoped by owner id. Update and delete are single
conditional statements on ``id AND user_id`` so that a row owned by someone
else behaves exactly like a missing row.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Protocol

from backend.db.postgres_client import PostgresClient
from backend.db.query_builder import (
    CREATE_TRANSACTIONS_TABLE_SQL,
    DELETE_TRANSACTION_SQL,
    INSERT_TRANSACTION_SQL,
    UPDATE_TRANSACTION_SQL,
    build_category_summary_query,
    build_list_query,
    build_predicates,
    build_summary_query,
    matches,
    require_owner,
)
from backend.reporting import (
    category_summaries_from_rows,
    summarize_by_category,
    summarize_transactions,
    summary_from_row,
)
from shared.models import (
    CategorySummary,
    Transaction,
    TransactionFilters,
    TransactionSummary,
    TransactionWrite,
)


_REQUIRED_ROW_FIELDS = ("id", "user_id", "title", "amount", "date", "category", "is_expense")


class TransactionsRepository(Protocol):
    async def open(self) -> None:
        """Acquire store resources; safe to call more than once."""

    async def close(self) -> None:
        """Release store resources."""

    async def insert_transaction(
        self, *, transaction_id: str, owner_id: str, payload: TransactionWrite
    ) -> Transaction:
        """Persist a new transaction and return the stored row."""

    async def list_transactions(self, filters: TransactionFilters) -> list[Transaction]:
        """Return owner-scoped rows ordered by date descending."""

    async def summarize_transactions(self, filters: TransactionFilters) -> TransactionSummary:
        """Return expense and income totals for the filtered rows."""

    async def summarize_by_category(self, filters: TransactionFilters) -> list[CategorySummary]:
        """Return per-category totals for the filtered rows."""

    async def update_transaction(
        self, *, transaction_id: str, owner_id: str, payload: TransactionWrite
    ) -> bool:
        """Replace writable fields; return False when no owned row matched."""

    async def delete_transaction(self, *, transaction_id: str, owner_id: str) -> bool:
        """Delete an owned row; return False when no owned row matched."""


class InMemoryTransactionsRepository:
    """In-memory repository used by tests/dev."""

    def __init__(self, transactions: list[Transaction] | None = None) -> None:
        self._transactions: dict[str, Transaction] = {
            transaction.id: transaction for transaction in transactions or []
        }

    async def open(self) -> None:
        return None

    async def close(self) -> None:
        return None

    def _filter_rows(self, filters: TransactionFilters) -> list[Transaction]:
        predicates = build_predicates(filters)
        return [
            transaction
            for transaction in self._transactions.values()
            if matches(transaction.model_dump(), predicates)
        ]

    async def insert_transaction(
        self, *, transaction_id: str, owner_id: str, payload: TransactionWrite
    ) -> Transaction:
        require_owner(owner_id)
        if transaction_id in self._transactions:
            raise RuntimeError(f"Duplicate transaction id: {transaction_id}")
        transaction = Transaction(
            id=transaction_id,
            user_id=owner_id,
            created_at=datetime.now(timezone.utc),
            **payload.model_dump(),
        )
        self._transactions[transaction_id] = transaction
        return transaction

    async def list_transactions(self, filters: TransactionFilters) -> list[Transaction]:
        return sorted(
            self._filter_rows(filters),
            key=lambda row: (row.date, row.created_at, row.id),
            reverse=True,
        )

    async def summarize_transactions(self, filters: TransactionFilters) -> TransactionSummary:
        return summarize_transactions(self._filter_rows(filters))

    async def summarize_by_category(self, filters: TransactionFilters) -> list[CategorySummary]:
        return summarize_by_category(self._filter_rows(filters))

    async def update_transaction(
        self, *, transaction_id: str, owner_id: str, payload: TransactionWrite
    ) -> bool:
        require_owner(owner_id)
        current = self._transactions.get(transaction_id)
        if current is None or current.user_id != owner_id:
            return False
        self._transactions[transaction_id] = current.model_copy(update=payload.model_dump())
        return True

    async def delete_transaction(self, *, transaction_id: str, owner_id: str) -> bool:
        require_owner(owner_id)
        current = self._transactions.get(transaction_id)
        if current is None or current.user_id != owner_id:
            return False
        del self._transactions[transaction_id]
        return True


class PostgresTransactionsRepository:
    """PostgreSQL repository over the ``transactions`` table."""

    def __init__(self, client: PostgresClient, *, auto_create_schema: bool = False) -> None:
        self._client = client
        self._auto_create_schema = auto_create_schema

    async def open(self) -> None:
        await self._client.connect()
        if self._auto_create_schema:
            await self._client.execute(CREATE_TRANSACTIONS_TABLE_SQL)

    async def close(self) -> None:
        await self._client.close()

    @staticmethod
    def _parse_row(row: dict[str, Any]) -> Transaction:
        for field_name in _REQUIRED_ROW_FIELDS:
            if row.get(field_name) is None:
                raise ValueError(f"Missing required field '{field_name}' in transactions row")

        raw_date = row["date"]
        if isinstance(raw_date, datetime):
            parsed_date = raw_date.date()
        elif isinstance(raw_date, date):
            parsed_date = raw_date
        else:
            parsed_date = date.fromisoformat(str(raw_date))

        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        elif not isinstance(created_at, datetime):
            created_at = datetime.now(timezone.utc)

        return Transaction(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=str(row["title"]),
            amount=Decimal(str(row["amount"])),
            date=parsed_date,
            category=row["category"],
            is_expense=bool(row["is_expense"]),
            created_at=created_at,
        )

    async def insert_transaction(
        self, *, transaction_id: str, owner_id: str, payload: TransactionWrite
    ) -> Transaction:
        row = await self._client.fetch_one(
            INSERT_TRANSACTION_SQL,
            transaction_id,
            require_owner(owner_id),
            payload.title,
            payload.amount,
            payload.date,
            payload.category.value,
            payload.is_expense,
        )
        if row is None:
            raise RuntimeError("Insert did not return the created transaction")
        return self._parse_row(row)

    async def list_transactions(self, filters: TransactionFilters) -> list[Transaction]:
        query, params = build_list_query(filters)
        rows = await self._client.fetch(query, *params)
        return [self._parse_row(row) for row in rows]

    async def summarize_transactions(self, filters: TransactionFilters) -> TransactionSummary:
        query, params = build_summary_query(filters)
        row = await self._client.fetch_one(query, *params)
        return summary_from_row(row)

    async def summarize_by_category(self, filters: TransactionFilters) -> list[CategorySummary]:
        query, params = build_category_summary_query(filters)
        rows = await self._client.fetch(query, *params)
        return category_summaries_from_rows(rows)

    async def update_transaction(
        self, *, transaction_id: str, owner_id: str, payload: TransactionWrite
    ) -> bool:
        affected = await self._client.execute(
            UPDATE_TRANSACTION_SQL,
            payload.title,
            payload.amount,
            payload.date,
            payload.category.value,
            payload.is_expense,
            transaction_id,
            require_owner(owner_id),
        )
        return affected > 0

    async def delete_transaction(self, *, transaction_id: str, owner_id: str) -> bool:
        affected = await self._client.execute(
            DELETE_TRANSACTION_SQL,
            transaction_id,
            require_owner(owner_id),
        )
        return affected > 0
