"""
models/segment.py
-----------------
Segments are rows of the generic `lists` table with list_type='segment'.

A segment stores a filter definition; its member companies (`list_companies`)
are materialised by a downstream processing pipeline. Changing the filters
invalidates the members: they are deleted and status goes back to 'new'.

Name uniqueness is per customer, case-insensitive, among non-deleted rows.
The partial unique index below backs up the in-process check.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from forge.db.base import Base, JSONType, TimestampMixin, generate_uuid


class ListType(str, PyEnum):
    segment = "segment"
    territory = "territory"
    list = "list"


class ListStatus(str, PyEnum):
    new = "new"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class ListSubtype(str, PyEnum):
    people = "people"
    company = "company"


class Segment(Base, TimestampMixin):
    __tablename__ = "lists"

    list_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    customer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("customers.customer_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.user_id", ondelete="SET NULL"),
        nullable=True,
    )
    list_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ListType.segment.value
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    filters: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ListStatus.new.value
    )
    subtype: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ListSubtype.company.value
    )
    is_static: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Segment list_id={self.list_id} name={self.name} status={self.status}>"


Index(
    "uq_lists_customer_type_lower_name",
    Segment.customer_id,
    Segment.list_type,
    func.lower(Segment.name),
    unique=True,
    postgresql_where=Segment.deleted_at.is_(None),
    sqlite_where=Segment.deleted_at.is_(None),
)


class ListCompany(Base):
    __tablename__ = "list_companies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    list_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("lists.list_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    customer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("customers.customer_id", ondelete="CASCADE"),
        nullable=False,
    )
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.company_id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
