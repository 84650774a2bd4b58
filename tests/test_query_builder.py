"""Unit tests for owner-scoped SQL construction."""

from __future__ import annotations

from datetime import date

import pytest

from backend.db.query_builder import (
    Predicate,
    build_category_summary_query,
    build_list_query,
    build_predicates,
    build_summary_query,
    compile_where,
    matches,
)
from shared.models import TransactionFilters


def test_list_query_without_filters_is_scoped_to_owner_only() -> None:
    query, params = build_list_query(TransactionFilters(owner_id="U1"))

    assert query == (
        "SELECT id, user_id, title, amount, date, category, is_expense, created_at "
        "FROM transactions WHERE user_id = $1 ORDER BY date DESC, created_at DESC, id DESC"
    )
    assert params == ["U1"]


def test_list_query_appends_filters_in_fixed_order() -> None:
    filters = TransactionFilters(
        owner_id="U1",
        is_expense=True,
        category="food",
        end_date=date(2024, 1, 31),
        start_date=date(2024, 1, 1),
    )

    query, params = build_list_query(filters)

    assert (
        "WHERE user_id = $1 AND date >= $2 AND date <= $3 AND category = $4 AND is_expense = $5 "
        "ORDER BY"
    ) in query
    assert params == ["U1", date(2024, 1, 1), date(2024, 1, 31), "Food", True]


def test_placeholders_stay_contiguous_when_filters_are_skipped() -> None:
    query, params = build_list_query(TransactionFilters(owner_id="U1", end_date=date(2024, 2, 1), is_expense=False))

    assert "user_id = $1 AND date <= $2 AND is_expense = $3" in query
    assert params == ["U1", date(2024, 2, 1), False]


def test_owner_value_is_never_interpolated_into_query_text() -> None:
    hostile_owner = "U1' OR '1'='1"

    query, params = build_list_query(TransactionFilters(owner_id=hostile_owner))

    assert hostile_owner not in query
    assert params == [hostile_owner]


def test_summary_query_uses_conditional_sums_without_ordering() -> None:
    query, params = build_summary_query(TransactionFilters(owner_id="U1", start_date=date(2024, 1, 1)))

    assert "COALESCE(SUM(CASE WHEN is_expense THEN amount ELSE 0 END), 0) AS total_expenses" in query
    assert "COALESCE(SUM(CASE WHEN NOT is_expense THEN amount ELSE 0 END), 0) AS total_income" in query
    assert query.endswith("WHERE user_id = $1 AND date >= $2")
    assert "ORDER BY" not in query
    assert params == ["U1", date(2024, 1, 1)]


def test_category_summary_query_groups_by_category() -> None:
    query, params = build_category_summary_query(TransactionFilters(owner_id="U1"))

    assert "GROUP BY category" in query
    assert "COUNT(*) AS count" in query
    assert "ORDER BY" not in query
    assert params == ["U1"]


@pytest.mark.parametrize("owner_id", ["", "   "])
def test_blank_owner_is_an_internal_error(owner_id: str) -> None:
    with pytest.raises(ValueError, match="owner_id is required"):
        build_predicates(TransactionFilters(owner_id=owner_id))


def test_predicate_rejects_columns_outside_allowlist() -> None:
    with pytest.raises(ValueError, match="Unsupported filter column"):
        Predicate("title; DROP TABLE transactions", "=", "x")


def test_predicate_rejects_unknown_operator() -> None:
    with pytest.raises(ValueError, match="Unsupported filter operator"):
        Predicate("date", "LIKE", "2024%")


def test_compile_where_can_start_numbering_after_existing_params() -> None:
    clause, params = compile_where([Predicate("user_id", "=", "U1"), Predicate("is_expense", "=", True)], start=3)

    assert clause == "user_id = $3 AND is_expense = $4"
    assert params == ["U1", True]


def test_matches_applies_inclusive_date_bounds_and_owner() -> None:
    predicates = build_predicates(
        TransactionFilters(owner_id="U1", start_date=date(2024, 1, 5), end_date=date(2024, 1, 5))
    )

    assert matches({"user_id": "U1", "date": date(2024, 1, 5)}, predicates) is True
    assert matches({"user_id": "U1", "date": date(2024, 1, 6)}, predicates) is False
    assert matches({"user_id": "U2", "date": date(2024, 1, 5)}, predicates) is False
