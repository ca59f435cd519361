"""Finance schemas: expenses, summaries and commission statements."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ExpenseCreate(BaseModel):
    """Payload for recording an expense."""

    resource_id: uuid.UUID
    incurred_at: datetime | date
    amount: Decimal = Field(ge=Decimal("0"))
    category: str | None = Field(default=None, max_length=64)
    note: str | None = Field(default=None, max_length=1024)


class ExpenseUpdate(BaseModel):
    """Mutable expense fields."""

    incurred_at: datetime | date | None = None
    amount: Decimal | None = Field(default=None, ge=Decimal("0"))
    category: str | None = Field(default=None, max_length=64)
    note: str | None = Field(default=None, max_length=1024)


class ExpenseRead(BaseModel):
    """Serialized expense."""

    id: uuid.UUID
    owner_id: uuid.UUID
    resource_id: uuid.UUID
    incurred_at: datetime
    amount: Decimal
    category: str
    note: str

    model_config = ConfigDict(from_attributes=True)


class ExpenseList(BaseModel):
    expenses: list[ExpenseRead]
    total: Decimal


class CategoryTotalRead(BaseModel):
    category: str
    total: Decimal
    count: int


class PeriodRead(BaseModel):
    start: datetime
    end: datetime


class LedgerCounts(BaseModel):
    reservations: int
    expenses: int


class LedgerSummaryRead(BaseModel):
    """Period-bucketed finance summary."""

    range: str
    period: PeriodRead
    revenue_total: Decimal
    expense_total: Decimal
    commission_total: Decimal
    profit: Decimal
    net_earnings: Decimal
    by_category: list[CategoryTotalRead]
    counts: LedgerCounts


class StatementPeriod(BaseModel):
    year: int
    month: int


class CommissionStatementRead(BaseModel):
    code: str
    period: StatementPeriod
    gross: Decimal
    commission: Decimal
    bookings: int
