"""Income/expense totals over an already filtered transaction set."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from shared.models import CategorySummary, Transaction, TransactionCategory, TransactionSummary, to_money


_ZERO = Decimal("0")


def _as_decimal(value: object) -> Decimal:
    if value is None:
        return _ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def summarize_transactions(transactions: Iterable[Transaction]) -> TransactionSummary:
    """Partition amounts by ``is_expense`` and sum each bucket with Decimal arithmetic."""

    total_expenses = _ZERO
    total_income = _ZERO
    for transaction in transactions:
        if transaction.is_expense:
            total_expenses += transaction.amount
        else:
            total_income += transaction.amount
    return TransactionSummary(
        total_expenses=to_money(total_expenses),
        total_income=to_money(total_income),
    )


def summarize_by_category(transactions: Iterable[Transaction]) -> list[CategorySummary]:
    """Return expense/income totals and counts per category, sorted by category name."""

    buckets: dict[TransactionCategory, list[Decimal | int]] = {}
    for transaction in transactions:
        bucket = buckets.setdefault(transaction.category, [_ZERO, _ZERO, 0])
        if transaction.is_expense:
            bucket[0] += transaction.amount
        else:
            bucket[1] += transaction.amount
        bucket[2] += 1

    return [
        CategorySummary(
            category=category,
            total_expenses=to_money(expenses),
            total_income=to_money(income),
            count=count,
        )
        for category, (expenses, income, count) in sorted(buckets.items(), key=lambda item: item[0].value)
    ]


def summary_from_row(row: dict[str, object] | None) -> TransactionSummary:
    """Build totals from a SQL aggregate row; missing or NULL sums count as zero."""

    if not row:
        return TransactionSummary(total_expenses=to_money(_ZERO), total_income=to_money(_ZERO))
    return TransactionSummary(
        total_expenses=to_money(_as_decimal(row.get("total_expenses"))),
        total_income=to_money(_as_decimal(row.get("total_income"))),
    )


def category_summaries_from_rows(rows: Iterable[dict[str, object]]) -> list[CategorySummary]:
    summaries = [
        CategorySummary(
            category=TransactionCategory.parse(row.get("category")),
            total_expenses=to_money(_as_decimal(row.get("total_expenses"))),
            total_income=to_money(_as_decimal(row.get("total_income"))),
            count=int(row.get("count") or 0),
        )
        for row in rows
    ]
    return sorted(summaries, key=lambda summary: summary.category.value)
