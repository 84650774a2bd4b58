"""Pydantic contracts shared across the API, services and repositories."""

from __future__ import annotations

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


CENTS = Decimal("0.01")
# Exclusive upper bound of the NUMERIC(12, 2) amount column.
MAX_AMOUNT = Decimal("1e10")

TRANSACTION_WRITE_FIELDS: tuple[str, ...] = ("title", "amount", "date", "category", "is_expense")


def to_money(value: Decimal) -> Decimal:
    """Normalize a decimal amount to two fractional digits (half-up)."""

    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class TransactionCategory(str, Enum):
    """Fixed category set shared with the mobile client."""

    FOOD = "Food"
    TRANSPORTATION = "Transportation"
    HOUSING = "Housing"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    SHOPPING = "Shopping"
    INCOME = "Income"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: object) -> TransactionCategory:
        """Resolve a category case-insensitively."""

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            needle = value.strip().lower()
            for member in cls:
                if member.value.lower() == needle:
                    return member
        raise ValueError(f"Unsupported category: {value!r}")


def _coerce_category(value: object) -> object:
    if value is None:
        return value
    return TransactionCategory.parse(value)


def _coerce_date(value: object) -> object:
    # Mobile clients send full ISO datetimes; only the calendar date is kept.
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    return value


class TransactionWrite(BaseModel):
    """Writable transaction fields, used for both create and full-replace update."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    date: dt.date
    category: TransactionCategory
    is_expense: bool

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("amount must be a number")
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("amount")
    @classmethod
    def round_amount(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("amount must be finite")
        if value >= MAX_AMOUNT:
            raise ValueError("amount must be below 10000000000")
        try:
            rounded = to_money(value)
        except InvalidOperation as exc:
            raise ValueError("amount cannot be rounded to cents") from exc
        if rounded >= MAX_AMOUNT:
            raise ValueError("amount must be below 10000000000")
        return rounded

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, value: object) -> object:
        return _coerce_date(value)

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, value: object) -> object:
        return _coerce_category(value)


class Transaction(BaseModel):
    """Persisted transaction row."""

    model_config = ConfigDict(extra="forbid")

    id: str
    user_id: str
    title: str
    amount: Decimal
    date: dt.date
    category: TransactionCategory
    is_expense: bool
    created_at: dt.datetime

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return Decimal(str(value))
        return value

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, value: object) -> object:
        return _coerce_category(value)


class TransactionFilters(BaseModel):
    """Owner-scoped filters accepted by list and summary queries."""

    model_config = ConfigDict(extra="forbid")

    owner_id: str
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    category: TransactionCategory | None = None
    is_expense: bool | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def coerce_dates(cls, value: object) -> object:
        if value == "":
            return None
        return value

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, value: object) -> object:
        if value == "":
            return None
        return _coerce_category(value)

    @field_validator("is_expense", mode="before")
    @classmethod
    def coerce_is_expense(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in {"true", "1"}:
                return True
            if normalized in {"false", "0"}:
                return False
            if not normalized:
                return None
            raise ValueError("is_expense must be true or false")
        return value


class TransactionSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_expenses: Decimal = Decimal("0.00")
    total_income: Decimal = Decimal("0.00")


class CategorySummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: TransactionCategory
    total_expenses: Decimal
    total_income: Decimal
    count: int


class AuthCredentials(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("email must not be blank")
        return value


class AuthSession(BaseModel):
    """Identity returned to the mobile client after sign-up or sign-in."""

    model_config = ConfigDict(extra="forbid")

    uid: str
    email: str
    token: str
