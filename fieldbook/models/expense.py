"""Operational expense ledger. Independent of bookings; only feeds reports."""

from datetime import date

from sqlalchemy import Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fieldbook.models.base import Base, TimestampMixin


class Expense(TimestampMixin, Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(primary_key=True)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[int] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String(100))

    __table_args__ = (Index("ix_expenses_date", "expense_date"),)

    def __repr__(self) -> str:
        return f"<Expense {self.expense_date} {self.amount} {self.category or '-'}>"
