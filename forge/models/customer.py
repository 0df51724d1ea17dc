"""
models/customer.py
------------------
Customer (tenant) ORM model.

Each customer is an isolated organisation. Tenant-owned rows carry a
customer_id and are only ever read through a TenantScope
(see db/scoping.py), which injects the customer_id predicate.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from forge.db.base import Base, TimestampMixin, generate_uuid


class Customer(Base, TimestampMixin):
    __tablename__ = "customers"

    customer_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    users: Mapped[list["User"]] = relationship(  # noqa: F821
        "User", back_populates="customer"
    )

    def __repr__(self) -> str:
        return f"<Customer customer_id={self.customer_id} name={self.name}>"
