"""Unit tests for transaction contracts and input coercion."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from shared.models import (
    TransactionCategory,
    TransactionFilters,
    TransactionSummary,
    TransactionWrite,
)
from tests.fakes import coffee_payload


def test_transaction_write_coerces_string_amount_to_decimal() -> None:
    write = TransactionWrite.model_validate(coffee_payload(amount=" 12.345 "))

    assert write.amount == Decimal("12.35")


def test_transaction_write_converts_float_amount_without_binary_drift() -> None:
    write = TransactionWrite.model_validate(coffee_payload(amount=0.1))

    assert write.amount == Decimal("0.10")


def test_transaction_write_rejects_negative_amount() -> None:
    with pytest.raises(ValidationError):
        TransactionWrite.model_validate(coffee_payload(amount="-1"))


def test_transaction_write_rejects_boolean_amount() -> None:
    with pytest.raises(ValidationError):
        TransactionWrite.model_validate(coffee_payload(amount=True))


def test_transaction_write_rejects_non_numeric_amount() -> None:
    with pytest.raises(ValidationError):
        TransactionWrite.model_validate(coffee_payload(amount="four"))


@pytest.mark.parametrize("amount", ["1e30", "123456789012.34", "10000000000", "9999999999.995"])
def test_transaction_write_rejects_amounts_beyond_numeric_column(amount: str) -> None:
    with pytest.raises(ValidationError) as error:
        TransactionWrite.model_validate(coffee_payload(amount=amount))

    assert error.value.errors()[0]["loc"] == ("amount",)


def test_transaction_write_accepts_largest_storable_amount() -> None:
    write = TransactionWrite.model_validate(coffee_payload(amount="9999999999.99"))

    assert write.amount == Decimal("9999999999.99")


def test_transaction_write_truncates_iso_datetime_to_date() -> None:
    write = TransactionWrite.model_validate(coffee_payload(date="2024-01-05T18:30:00Z"))

    assert write.date == date(2024, 1, 5)


def test_transaction_write_matches_category_case_insensitively() -> None:
    write = TransactionWrite.model_validate(coffee_payload(category="  food "))

    assert write.category is TransactionCategory.FOOD


def test_transaction_write_rejects_unknown_category() -> None:
    with pytest.raises(ValidationError):
        TransactionWrite.model_validate(coffee_payload(category="Travel"))


def test_transaction_write_ignores_echoed_identifier() -> None:
    write = TransactionWrite.model_validate(coffee_payload(id="abc", user_id="someone-else"))

    assert "id" not in write.model_dump()
    assert "user_id" not in write.model_dump()


def test_transaction_write_strips_title() -> None:
    write = TransactionWrite.model_validate(coffee_payload(title="  Coffee  "))

    assert write.title == "Coffee"


def test_income_category_does_not_force_expense_flag() -> None:
    write = TransactionWrite.model_validate(coffee_payload(category="Income", is_expense=True))

    assert write.category is TransactionCategory.INCOME
    assert write.is_expense is True


@pytest.mark.parametrize(
    ("raw_value", "expected"),
    [("true", True), ("TRUE", True), ("1", True), ("false", False), ("0", False), ("", None)],
)
def test_transaction_filters_parse_is_expense_strings(raw_value: str, expected: bool | None) -> None:
    filters = TransactionFilters(owner_id="U1", is_expense=raw_value)

    assert filters.is_expense is expected


def test_transaction_filters_reject_unknown_is_expense_value() -> None:
    with pytest.raises(ValidationError):
        TransactionFilters(owner_id="U1", is_expense="maybe")


def test_transaction_filters_treat_empty_strings_as_absent() -> None:
    filters = TransactionFilters(owner_id="U1", start_date="", end_date="", category="")

    assert filters.start_date is None
    assert filters.end_date is None
    assert filters.category is None


def test_transaction_summary_serializes_totals_as_numeric_strings() -> None:
    summary = TransactionSummary(total_expenses=Decimal("4.50"), total_income=Decimal("0.00"))

    assert summary.model_dump(mode="json") == {"total_expenses": "4.50", "total_income": "0.00"}
