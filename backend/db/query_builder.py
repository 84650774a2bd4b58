"""Owner-scoped, parameterized query construction for the transactions table.

Filters are turned into a list of :class:`Predicate` values drawn from a fixed
allowlist of columns and operators. The list compiles to SQL with ``$n``
placeholders for asyncpg, and can also be evaluated in-process so the
in-memory repository applies the exact same filter contract.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from shared.models import TransactionFilters


TRANSACTIONS_TABLE = "transactions"
TRANSACTION_COLUMNS: tuple[str, ...] = (
    "id",
    "user_id",
    "title",
    "amount",
    "date",
    "category",
    "is_expense",
    "created_at",
)
LIST_ORDER_BY = "date DESC, created_at DESC, id DESC"

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    ">=": operator.ge,
    "<=": operator.le,
}
_FILTERABLE_COLUMNS = frozenset({"user_id", "date", "category", "is_expense"})


@dataclass(frozen=True, slots=True)
class Predicate:
    column: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.column not in _FILTERABLE_COLUMNS:
            raise ValueError(f"Unsupported filter column: {self.column}")
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")

    def evaluate(self, row: Mapping[str, Any]) -> bool:
        return _OPERATORS[self.op](row[self.column], self.value)


def require_owner(owner_id: str | None) -> str:
    """Return the owner id or fail loudly; a blank owner means broken auth wiring."""

    if not isinstance(owner_id, str) or not owner_id.strip():
        raise ValueError("owner_id is required to scope transaction queries")
    return owner_id


def build_predicates(filters: TransactionFilters) -> list[Predicate]:
    """Return the owner predicate followed by present filters in fixed order."""

    predicates = [Predicate("user_id", "=", require_owner(filters.owner_id))]
    if filters.start_date is not None:
        predicates.append(Predicate("date", ">=", filters.start_date))
    if filters.end_date is not None:
        predicates.append(Predicate("date", "<=", filters.end_date))
    if filters.category is not None:
        predicates.append(Predicate("category", "=", filters.category.value))
    if filters.is_expense is not None:
        predicates.append(Predicate("is_expense", "=", filters.is_expense))
    return predicates


def compile_where(predicates: list[Predicate], *, start: int = 1) -> tuple[str, list[Any]]:
    """Compile predicates into an AND-joined clause and its positional params."""

    clauses: list[str] = []
    params: list[Any] = []
    for index, predicate in enumerate(predicates, start=start):
        clauses.append(f"{predicate.column} {predicate.op} ${index}")
        params.append(predicate.value)
    return " AND ".join(clauses), params


def matches(row: Mapping[str, Any], predicates: list[Predicate]) -> bool:
    return all(predicate.evaluate(row) for predicate in predicates)


def build_list_query(filters: TransactionFilters) -> tuple[str, list[Any]]:
    where, params = compile_where(build_predicates(filters))
    query = (
        f"SELECT {', '.join(TRANSACTION_COLUMNS)} FROM {TRANSACTIONS_TABLE} "
        f"WHERE {where} ORDER BY {LIST_ORDER_BY}"
    )
    return query, params


def build_summary_query(filters: TransactionFilters) -> tuple[str, list[Any]]:
    where, params = compile_where(build_predicates(filters))
    query = (
        "SELECT "
        "COALESCE(SUM(CASE WHEN is_expense THEN amount ELSE 0 END), 0) AS total_expenses, "
        "COALESCE(SUM(CASE WHEN NOT is_expense THEN amount ELSE 0 END), 0) AS total_income "
        f"FROM {TRANSACTIONS_TABLE} WHERE {where}"
    )
    return query, params


def build_category_summary_query(filters: TransactionFilters) -> tuple[str, list[Any]]:
    where, params = compile_where(build_predicates(filters))
    query = (
        "SELECT category, "
        "COALESCE(SUM(CASE WHEN is_expense THEN amount ELSE 0 END), 0) AS total_expenses, "
        "COALESCE(SUM(CASE WHEN NOT is_expense THEN amount ELSE 0 END), 0) AS total_income, "
        "COUNT(*) AS count "
        f"FROM {TRANSACTIONS_TABLE} WHERE {where} GROUP BY category"
    )
    return query, params


INSERT_TRANSACTION_SQL = (
    f"INSERT INTO {TRANSACTIONS_TABLE} (id, user_id, title, amount, date, category, is_expense) "
    f"VALUES ($1, $2, $3, $4, $5, $6, $7) RETURNING {', '.join(TRANSACTION_COLUMNS)}"
)
UPDATE_TRANSACTION_SQL = (
    f"UPDATE {TRANSACTIONS_TABLE} "
    "SET title = $1, amount = $2, date = $3, category = $4, is_expense = $5 "
    "WHERE id = $6 AND user_id = $7"
)
DELETE_TRANSACTION_SQL = f"DELETE FROM {TRANSACTIONS_TABLE} WHERE id = $1 AND user_id = $2"

CREATE_TRANSACTIONS_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {TRANSACTIONS_TABLE} (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    amount NUMERIC(12, 2) NOT NULL CHECK (amount >= 0),
    date DATE NOT NULL,
    category TEXT NOT NULL,
    is_expense BOOLEAN NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS transactions_user_id_date_idx
    ON {TRANSACTIONS_TABLE} (user_id, date DESC);
"""
