"""Financial report routes.

Every report takes either an explicit date_from/date_to pair or a preset
("today", "week", "month", "year"). Without either, the current month is used.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.core.database import get_db
from fieldbook.core.dependencies import require_staff
from fieldbook.models.user import User
from fieldbook.schemas import CategoryExpenseOut, DailyIncomeOut, FieldIncomeOut, FinancialSummaryOut
from fieldbook.services.civil_day import PRESETS, DateRange, preset_range
from fieldbook.services.reports import daily_income, expenses_by_category, financial_summary, income_by_field

router = APIRouter(prefix="/reports", tags=["reports"])


def report_range(
    date_from: date | None = None,
    date_to: date | None = None,
    preset: str = Query("month", description=f"One of {', '.join(PRESETS)}"),
) -> DateRange:
    if date_from is not None or date_to is not None:
        if date_from is None or date_to is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="date_from and date_to must be given together",
            )
        if date_from > date_to:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="date_from must not be after date_to",
            )
        return DateRange(date_from, date_to)
    return preset_range(preset)


@router.get("/summary", response_model=FinancialSummaryOut)
async def summary(
    period: DateRange = Depends(report_range),
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    totals = await financial_summary(db, period.start, period.end)
    return FinancialSummaryOut(date_from=period.start, date_to=period.end, **totals)


@router.get("/daily-income", response_model=list[DailyIncomeOut])
async def get_daily_income(
    period: DateRange = Depends(report_range),
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await daily_income(db, period.start, period.end)


@router.get("/income-by-field", response_model=list[FieldIncomeOut])
async def get_income_by_field(
    period: DateRange = Depends(report_range),
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await income_by_field(db, period.start, period.end)


@router.get("/expenses-by-category", response_model=list[CategoryExpenseOut])
async def get_expenses_by_category(
    period: DateRange = Depends(report_range),
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await expenses_by_category(db, period.start, period.end)
