"""
models/company.py
-----------------
Companies and the per-tenant relationship rows the scoring flow reads/writes.

  Company            read-only from this service (existence check)
  CompanyMetadata    Diffbot enrichment snapshots, freshest by updated_at
  CustomerCompany    tenant <-> company join; the only row scoring mutates
  CompanyScoringQueue  pending scoring work claimed by the scoring worker
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from forge.db.base import Base, JSONType, TimestampMixin, generate_uuid


class Company(Base, TimestampMixin):
    __tablename__ = "companies"

    company_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Company company_id={self.company_id} domain={self.domain}>"


class CompanyMetadata(Base, TimestampMixin):
    __tablename__ = "company_metadata"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.company_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    diffbot_json: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)


class CustomerCompany(Base, TimestampMixin):
    __tablename__ = "customer_companies"
    __table_args__ = (
        UniqueConstraint("customer_id", "company_id", name="uq_customer_companies_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    customer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("customers.customer_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.company_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # {"score": float, "short_description": str, "full_description": str}
    last_scoring_results: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSONType, nullable=True
    )
    scoring_results_updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class ScoringQueueStatus(str, PyEnum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class CompanyScoringQueue(Base, TimestampMixin):
    __tablename__ = "company_scoring_queue"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
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
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ScoringQueueStatus.pending.value, index=True
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
