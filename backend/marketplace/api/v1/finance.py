"""Owner finance endpoints: expenses, summaries and commission statements."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api import deps
from marketplace.api.errors import to_http_exception
from marketplace.models.expense import LedgerDomain
from marketplace.models.user import User
from marketplace.schemas.finance import (
    CategoryTotalRead,
    CommissionStatementRead,
    ExpenseCreate,
    ExpenseList,
    ExpenseRead,
    ExpenseUpdate,
    LedgerSummaryRead,
)
from marketplace.security.permissions import ensure_owner_or_admin
from marketplace.services import expense_service, ledger_service, resource_service
from marketplace.services.ledger_service import ReportRange

router = APIRouter(prefix="/finance/{domain}")


async def _resolve_owner(
    session: AsyncSession,
    *,
    user: User,
    domain: LedgerDomain,
    resource_id: uuid.UUID | None,
    owner_id: uuid.UUID | None,
) -> uuid.UUID:
    """Owner whose ledger is read; admins may read any owner's ledger."""
    if resource_id is not None:
        resource = await resource_service.get_owned_resource(
            session, user=user, domain=domain, resource_id=resource_id
        )
        return resource.owner_id
    if owner_id is not None and owner_id != user.id:
        ensure_owner_or_admin(user, owner_id)
        return owner_id
    return user.id


@router.post(
    "/expenses",
    response_model=ExpenseRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record an expense",
)
async def create_expense(
    domain: LedgerDomain,
    payload: ExpenseCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> ExpenseRead:
    try:
        expense = await expense_service.record_expense(
            session, user=current_user, domain=domain, **payload.model_dump()
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return ExpenseRead.model_validate(expense)


@router.get("/expenses", response_model=ExpenseList, summary="List expenses")
async def list_expenses(
    domain: LedgerDomain,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    resource_id: uuid.UUID | None = Query(default=None),
    owner_id: uuid.UUID | None = Query(default=None),
) -> ExpenseList:
    try:
        resolved_owner = await _resolve_owner(
            session,
            user=current_user,
            domain=domain,
            resource_id=resource_id,
            owner_id=owner_id,
        )
        listing = await expense_service.list_expenses(
            session,
            owner_id=resolved_owner,
            domain=domain,
            resource_id=resource_id,
            date_from=date_from,
            date_to=date_to,
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return ExpenseList(
        expenses=[ExpenseRead.model_validate(item) for item in listing.expenses],
        total=listing.total,
    )


@router.get(
    "/expenses/categories",
    response_model=list[CategoryTotalRead],
    summary="Expense totals by category",
)
async def expense_categories(
    domain: LedgerDomain,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    resource_id: uuid.UUID | None = Query(default=None),
) -> list[CategoryTotalRead]:
    try:
        owner = await _resolve_owner(
            session,
            user=current_user,
            domain=domain,
            resource_id=resource_id,
            owner_id=None,
        )
        buckets = await expense_service.expense_categories(
            session,
            owner_id=owner,
            domain=domain,
            resource_id=resource_id,
            date_from=date_from,
            date_to=date_to,
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return [CategoryTotalRead(**bucket.to_dict()) for bucket in buckets]


@router.patch("/expenses/{expense_id}", response_model=ExpenseRead, summary="Edit an expense")
async def update_expense(
    domain: LedgerDomain,
    expense_id: uuid.UUID,
    payload: ExpenseUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> ExpenseRead:
    try:
        expense = await expense_service.update_expense(
            session,
            user=current_user,
            expense_id=expense_id,
            changes=payload.model_dump(exclude_unset=True),
            domain=domain,
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return ExpenseRead.model_validate(expense)


@router.delete(
    "/expenses/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an expense",
)
async def delete_expense(
    domain: LedgerDomain,
    expense_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> Response:
    try:
        await expense_service.delete_expense(
            session, user=current_user, expense_id=expense_id, domain=domain
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/summary", response_model=LedgerSummaryRead, summary="Finance summary")
async def finance_summary(
    domain: LedgerDomain,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
    range_: ReportRange = Query(default=ReportRange.MONTHLY, alias="range"),
    anchor: date | None = Query(default=None, alias="date"),
    resource_id: uuid.UUID | None = Query(default=None),
    owner_id: uuid.UUID | None = Query(default=None),
) -> LedgerSummaryRead:
    try:
        owner = await _resolve_owner(
            session,
            user=current_user,
            domain=domain,
            resource_id=resource_id,
            owner_id=owner_id,
        )
        summary = await ledger_service.owner_summary(
            session,
            owner_id=owner,
            domain=domain,
            resource_id=resource_id,
            range_=range_,
            anchor=anchor or datetime.now(ledger_service.report_timezone()),
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return LedgerSummaryRead.model_validate(summary.to_dict())


@router.get(
    "/commission-statement",
    response_model=CommissionStatementRead,
    summary="Monthly commission statement",
)
async def commission_statement(
    domain: LedgerDomain,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
    year: int | None = Query(default=None, ge=2000, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    resource_id: uuid.UUID | None = Query(default=None),
    owner_id: uuid.UUID | None = Query(default=None),
) -> CommissionStatementRead:
    today = datetime.now(ledger_service.report_timezone()).date()
    try:
        owner = await _resolve_owner(
            session,
            user=current_user,
            domain=domain,
            resource_id=resource_id,
            owner_id=owner_id,
        )
        statement = await ledger_service.commission_statement(
            session,
            owner_id=owner,
            domain=domain,
            resource_id=resource_id,
            year=year or today.year,
            month=month or today.month,
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return CommissionStatementRead.model_validate(statement.to_dict())
