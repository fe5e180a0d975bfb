"""Staff user model. Customers never log in; only staff have accounts."""

import enum

from sqlalchemy import Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from fieldbook.models.base import Base, TimestampMixin


class UserRole(enum.StrEnum):
    ADMIN = "ADMIN"
    OWNER = "OWNER"


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(200), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [x.value for x in e]),
        default=UserRole.ADMIN,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User {self.email} {self.role.value}>"
