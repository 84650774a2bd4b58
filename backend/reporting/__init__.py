"""Aggregations over filtered transaction sets."""

from backend.reporting.summary import (
    category_summaries_from_rows,
    summarize_by_category,
    summarize_transactions,
    summary_from_row,
)

__all__ = [
    "category_summaries_from_rows",
    "summarize_by_category",
    "summarize_transactions",
    "summary_from_row",
]
