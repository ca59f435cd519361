"""Owner expense bookkeeping for vehicles and attractions."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import ReservationEngineError, ResourceNotFound
from marketplace.models import Expense, LedgerDomain, User
from marketplace.security.permissions import ensure_owner_or_admin
from marketplace.services.calendar_service import coerce_utc
from marketplace.services.ledger_service import (
    DEFAULT_CATEGORY,
    CategoryTotal,
    ExpenseEntry,
    category_breakdown,
    report_timezone,
)
from marketplace.services.resource_service import get_owned_resource

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExpenseListing:
    expenses: list[Expense] = field(default_factory=list)
    total: Decimal = Decimal("0")


def _normalize_category(category: str | None) -> str:
    cleaned = (category or "").strip().lower()
    return cleaned or DEFAULT_CATEGORY


def _as_instant(value: datetime | date) -> datetime:
    """Dates and naive datetimes are read in the reporting timezone."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min, tzinfo=report_timezone())
    elif value.tzinfo is None:
        value = value.replace(tzinfo=report_timezone())
    return coerce_utc(value)


def _validate_amount(amount: Decimal) -> Decimal:
    value = Decimal(amount)
    if value < 0:
        raise ReservationEngineError("Expense amount cannot be negative")
    return value


def _window(date_from: date | None, date_to: date | None) -> tuple[datetime | None, datetime | None]:
    """Translate an inclusive date window into half-open instants."""
    tz = report_timezone()
    start = datetime.combine(date_from, time.min, tzinfo=tz) if date_from else None
    end = (
        datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=tz)
        if date_to
        else None
    )
    if start is not None and end is not None and end <= start:
        raise ReservationEngineError("'to' must not be before 'from'")
    return start, end


async def record_expense(
    session: AsyncSession,
    *,
    user: User,
    domain: LedgerDomain,
    resource_id: uuid.UUID,
    incurred_at: datetime | date,
    amount: Decimal,
    category: str | None = None,
    note: str | None = None,
) -> Expense:
    resource = await get_owned_resource(
        session, user=user, domain=domain, resource_id=resource_id
    )
    expense = Expense(
        owner_id=resource.owner_id,
        domain=domain,
        resource_id=resource.id,
        incurred_at=_as_instant(incurred_at),
        amount=_validate_amount(amount),
        category=_normalize_category(category),
        note=(note or "").strip(),
    )
    session.add(expense)
    await session.commit()
    await session.refresh(expense)
    logger.info("Expense %s recorded against %s %s", expense.id, domain.value, resource.id)
    return expense


async def get_expense(
    session: AsyncSession,
    *,
    user: User,
    expense_id: uuid.UUID,
    domain: LedgerDomain | None = None,
) -> Expense:
    expense = await session.get(Expense, expense_id)
    if expense is None or (domain is not None and expense.domain != domain):
        raise ResourceNotFound("Expense not found")
    ensure_owner_or_admin(user, expense.owner_id)
    return expense


async def _query_expenses(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    domain: LedgerDomain,
    resource_id: uuid.UUID | None,
    date_from: date | None,
    date_to: date | None,
) -> Sequence[Expense]:
    start, end = _window(date_from, date_to)
    stmt = (
        select(Expense)
        .where(Expense.owner_id == owner_id, Expense.domain == domain)
        .order_by(Expense.incurred_at.desc())
    )
    if resource_id is not None:
        stmt = stmt.where(Expense.resource_id == resource_id)
    if start is not None:
        stmt = stmt.where(Expense.incurred_at >= coerce_utc(start))
    if end is not None:
        stmt = stmt.where(Expense.incurred_at < coerce_utc(end))
    return (await session.execute(stmt)).scalars().all()


async def list_expenses(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    domain: LedgerDomain,
    resource_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> ExpenseListing:
    """Expenses in the inclusive ``[date_from, date_to]`` window and their total."""
    rows = await _query_expenses(
        session,
        owner_id=owner_id,
        domain=domain,
        resource_id=resource_id,
        date_from=date_from,
        date_to=date_to,
    )
    total = sum((Decimal(row.amount) for row in rows), Decimal("0"))
    return ExpenseListing(expenses=list(rows), total=total)


async def expense_categories(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    domain: LedgerDomain,
    resource_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[CategoryTotal]:
    rows = await _query_expenses(
        session,
        owner_id=owner_id,
        domain=domain,
        resource_id=resource_id,
        date_from=date_from,
        date_to=date_to,
    )
    return category_breakdown(ExpenseEntry.from_expense(row) for row in rows)


async def update_expense(
    session: AsyncSession,
    *,
    user: User,
    expense_id: uuid.UUID,
    changes: dict[str, Any],
    domain: LedgerDomain | None = None,
) -> Expense:
    expense = await get_expense(session, user=user, expense_id=expense_id, domain=domain)
    if "amount" in changes and changes["amount"] is not None:
        expense.amount = _validate_amount(changes["amount"])
    if "category" in changes:
        expense.category = _normalize_category(changes["category"])
    if "note" in changes:
        expense.note = (changes["note"] or "").strip()
    if changes.get("incurred_at") is not None:
        expense.incurred_at = _as_instant(changes["incurred_at"])
    await session.commit()
    await session.refresh(expense)
    return expense


async def delete_expense(
    session: AsyncSession,
    *,
    user: User,
    expense_id: uuid.UUID,
    domain: LedgerDomain | None = None,
) -> None:
    expense = await get_expense(session, user=user, expense_id=expense_id, domain=domain)
    await session.delete(expense)
    await session.commit()
    logger.info("Expense %s deleted", expense_id)
