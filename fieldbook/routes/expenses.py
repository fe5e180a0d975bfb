"""Expense ledger routes."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.core.database import get_db
from fieldbook.core.dependencies import require_staff
from fieldbook.models.expense import Expense
from fieldbook.models.user import User
from fieldbook.schemas import ExpenseCreate, ExpenseOut, ExpenseUpdate
from fieldbook.services.reports import total_expenses

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


async def _get_expense(db: AsyncSession, expense_id: int) -> Expense:
    result = await db.execute(select(Expense).where(Expense.id == expense_id))
    expense = result.scalar_one_or_none()
    if expense is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return expense


@router.get("", response_model=list[ExpenseOut])
async def list_expenses(
    date_from: date | None = None,
    date_to: date | None = None,
    category: str | None = None,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Expense)
    if date_from is not None:
        stmt = stmt.where(Expense.expense_date >= date_from)
    if date_to is not None:
        stmt = stmt.where(Expense.expense_date <= date_to)
    if category:
        stmt = stmt.where(Expense.category == category)

    result = await db.execute(stmt.order_by(Expense.expense_date.desc(), Expense.id.desc()))
    return result.scalars().all()


@router.get("/total")
async def expense_total(
    date_from: date,
    date_to: date,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return {
        "date_from": date_from.isoformat(),
        "date_to": date_to.isoformat(),
        "total": await total_expenses(db, date_from, date_to),
    }


@router.get("/categories", response_model=list[str])
async def list_categories(user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    """Distinct categories already in use, for the entry form's suggestions."""
    result = await db.execute(
        select(Expense.category).where(Expense.category.is_not(None)).distinct().order_by(Expense.category)
    )
    return result.scalars().all()


@router.get("/{expense_id}", response_model=ExpenseOut)
async def get_expense(expense_id: int, user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    return await _get_expense(db, expense_id)


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense(body: ExpenseCreate, user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    data = body.model_dump()
    data["category"] = (data["category"] or "").strip() or None
    expense = Expense(**data)
    db.add(expense)
    await db.flush()
    logger.info("Expense %s (%s) recorded by user %s", expense.id, expense.amount, user.id)
    return expense


@router.patch("/{expense_id}", response_model=ExpenseOut)
async def update_expense(
    expense_id: int,
    body: ExpenseUpdate,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    expense = await _get_expense(db, expense_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        if key == "category":
            value = (value or "").strip() or None
        setattr(expense, key, value)
    await db.flush()
    return expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(expense_id: int, user: User = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    expense = await _get_expense(db, expense_id)
    await db.delete(expense)
    logger.info("Expense %s deleted by user %s", expense_id, user.id)
