"""Field and time-slot category models.

Field = a bookable court, priced per hour in the smallest currency unit.
TimeSlot = an admin-defined grouping of operating hours (e.g. "Pagi 06:00-10:00")
used only to lay out hour buttons; conflict detection never looks at it.
"""

from datetime import time

from sqlalchemy import Boolean, Index, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from fieldbook.models.base import Base, TimestampMixin


class Field(TimestampMixin, Base):
    __tablename__ = "fields"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    price_per_hour: Mapped[int] = mapped_column(nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Field {self.name} @ {self.price_per_hour}/h>"


class TimeSlot(TimestampMixin, Base):
    __tablename__ = "time_slots"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("ix_time_slots_sort", "sort_order"),)

    def __repr__(self) -> str:
        return f"<TimeSlot {self.name} {self.start_time:%H:%M}-{self.end_time:%H:%M}>"
