"""
models/user.py
--------------
User ORM model with roles and tenant binding.

Role design:
  - 'admin': tenant administrator; sees every LLM job of their customer.
  - 'user':  sees their own jobs and the customer's segments.

customer_id is nullable: platform/system users exist outside any tenant and
are rejected (403) by every tenant-scoped endpoint.
"""

from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from forge.db.base import Base, TimestampMixin, generate_uuid


class UserRole(str, PyEnum):
    admin = "admin"
    user = "user"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.user.value
    )
    customer_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("customers.customer_id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    customer: Mapped[Optional["Customer"]] = relationship(  # noqa: F821
        "Customer", back_populates="users"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin.value

    def __repr__(self) -> str:
        return f"<User user_id={self.user_id} email={self.email} role={self.role}>"
