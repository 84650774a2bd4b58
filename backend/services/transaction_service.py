"""Transaction CRUD service.

Validates request payloads before any store access, scopes every operation to
the authenticated owner and maps store failures to client-safe errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from backend.db.query_builder import require_owner
from backend.errors import NotFoundError, StoreError, ValidationError
from backend.repositories.transactions_repository import TransactionsRepository
from shared.models import (
    TRANSACTION_WRITE_FIELDS,
    CategorySummary,
    Transaction,
    TransactionFilters,
    TransactionSummary,
    TransactionWrite,
)


logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields"
NOT_FOUND_MESSAGE = "Transaction not found"


def _first_error_field(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if errors and errors[0].get("loc"):
        return str(errors[0]["loc"][0])
    return "request"


def _is_missing(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_transaction_payload(payload: object) -> TransactionWrite:
    """Validate a create/update body into writable fields."""

    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    if any(_is_missing(payload.get(field_name)) for field_name in TRANSACTION_WRITE_FIELDS):
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    try:
        return TransactionWrite.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid {_first_error_field(exc)}") from exc


def build_filters(
    owner_id: str,
    *,
    start_date: Any = None,
    end_date: Any = None,
    category: Any = None,
    is_expense: Any = None,
) -> TransactionFilters:
    """Build owner-scoped filters from raw query values."""

    require_owner(owner_id)
    try:
        filters = TransactionFilters(
            owner_id=owner_id,
            start_date=start_date,
            end_date=end_date,
            category=category,
            is_expense=is_expense,
        )
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid {_first_error_field(exc)}") from exc

    if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
        raise ValidationError("start_date must be before or equal to end_date")
    return filters


@dataclass(slots=True)
class TransactionService:
    repository: TransactionsRepository

    async def create_transaction(self, *, owner_id: str, payload: object) -> str:
        require_owner(owner_id)
        write = parse_transaction_payload(payload)
        transaction_id = str(uuid4())
        try:
            await self.repository.insert_transaction(
                transaction_id=transaction_id,
                owner_id=owner_id,
                payload=write,
            )
        except Exception as exc:
            logger.exception("transaction_create_failed owner_id=%s", owner_id)
            raise StoreError("Failed to create transaction") from exc

        logger.info("transaction_created owner_id=%s transaction_id=%s", owner_id, transaction_id)
        return transaction_id

    async def list_transactions(self, filters: TransactionFilters) -> list[Transaction]:
        require_owner(filters.owner_id)
        try:
            return await self.repository.list_transactions(filters)
        except Exception as exc:
            logger.exception("transaction_list_failed owner_id=%s", filters.owner_id)
            raise StoreError("Failed to fetch transactions") from exc

    async def get_summary(self, filters: TransactionFilters) -> TransactionSummary:
        require_owner(filters.owner_id)
        try:
            return await self.repository.summarize_transactions(filters)
        except Exception as exc:
            logger.exception("transaction_summary_failed owner_id=%s", filters.owner_id)
            raise StoreError("Failed to fetch transaction summary") from exc

    async def get_category_summary(self, filters: TransactionFilters) -> list[CategorySummary]:
        require_owner(filters.owner_id)
        try:
            return await self.repository.summarize_by_category(filters)
        except Exception as exc:
            logger.exception("transaction_category_summary_failed owner_id=%s", filters.owner_id)
            raise StoreError("Failed to fetch transaction summary") from exc

    async def update_transaction(self, *, owner_id: str, transaction_id: str, payload: object) -> None:
        """Fully replace the writable fields of an owned transaction."""

        require_owner(owner_id)
        write = parse_transaction_payload(payload)
        try:
            updated = await self.repository.update_transaction(
                transaction_id=transaction_id,
                owner_id=owner_id,
                payload=write,
            )
        except Exception as exc:
            logger.exception(
                "transaction_update_failed owner_id=%s transaction_id=%s",
                owner_id,
                transaction_id,
            )
            raise StoreError("Failed to update transaction") from exc

        if not updated:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        logger.info("transaction_updated owner_id=%s transaction_id=%s", owner_id, transaction_id)

    async def delete_transaction(self, *, owner_id: str, transaction_id: str) -> None:
        require_owner(owner_id)
        try:
            deleted = await self.repository.delete_transaction(
                transaction_id=transaction_id,
                owner_id=owner_id,
            )
        except Exception as exc:
            logger.exception(
                "transaction_delete_failed owner_id=%s transaction_id=%s",
                owner_id,
                transaction_id,
            )
            raise StoreError("Failed to delete transaction") from exc

        if not deleted:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        logger.info("transaction_deleted owner_id=%s transaction_id=%s", owner_id, transaction_id)
