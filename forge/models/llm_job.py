"""
models/llm_job.py
-----------------
Queued / running LLM jobs. This service only cancels them; the worker that
executes jobs watches the status column.

Jobs are owner-scoped: a regular user sees only their own jobs, a tenant admin
sees every job of the customer.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from forge.db.base import Base, TimestampMixin, generate_uuid


class JobStatus(str, PyEnum):
    queued = "queued"
    running = "running"
    processing = "processing"
    completed = "completed"
    error = "error"
    exhausted = "exhausted"
    cancelled = "cancelled"


TERMINAL_JOB_STATUSES = (
    JobStatus.completed.value,
    JobStatus.error.value,
    JobStatus.exhausted.value,
    JobStatus.cancelled.value,
)


class LLMJob(Base, TimestampMixin):
    __tablename__ = "llm_jobs"
    __owner_scoped__ = True

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
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
        index=True,
    )
    feature_slug: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JobStatus.queued.value, index=True
    )
    prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<LLMJob id={self.id} status={self.status}>"
