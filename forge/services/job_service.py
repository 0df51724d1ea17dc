"""
services/job_service.py
-----------------------
Cancellation of queued / running LLM jobs.

Visibility is decided by the caller's TenantScope: a job of another tenant
(or another user's job, for non-admins) looks exactly like a job that does
not exist, so both answer 404 and existence never leaks.

The cancel itself is a conditional update (status not terminal). If the job
reaches a terminal state between the read and the update, zero rows match
and the call reports cancelled=False instead of failing.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from forge.core.errors import ConflictError, NotFoundError, UpstreamError
from forge.core.logging import get_logger
from forge.db.base import utcnow
from forge.db.scoping import TenantScope
from forge.models.llm_job import TERMINAL_JOB_STATUSES, JobStatus, LLMJob

logger = get_logger(__name__)


@dataclass(frozen=True)
class CancelOutcome:
    cancelled: bool
    job: LLMJob

    @property
    def message(self) -> str:
        if self.cancelled:
            return "Job cancelled successfully"
        return "Job was not cancelled (may have already completed)"


class JobService:

    @staticmethod
    async def get_visible_job(
        db: AsyncSession, scope: TenantScope, job_id: str
    ) -> Optional[LLMJob]:
        return await db.scalar(scope.select(LLMJob).where(LLMJob.id == job_id))

    @staticmethod
    async def cancel_job(
        db: AsyncSession, scope: TenantScope, job_id: str
    ) -> CancelOutcome:
        job = await JobService.get_visible_job(db, scope, job_id)
        if job is None:
            raise NotFoundError("Job not found", code="JOB_NOT_FOUND")

        if job.status in TERMINAL_JOB_STATUSES:
            raise ConflictError(
                "Job is already in a terminal state and cannot be cancelled",
                code="ALREADY_TERMINAL",
            )

        now = utcnow()
        try:
            result = await db.execute(
                scope.update(LLMJob)
                .where(
                    LLMJob.id == job_id,
                    LLMJob.status.not_in(TERMINAL_JOB_STATUSES),
                )
                .values(
                    status=JobStatus.cancelled.value,
                    cancelled_at=now,
                    completed_at=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to cancel job", job_id=job_id, error=str(exc))
            raise UpstreamError(f"Failed to cancel job: {exc}") from exc

        cancelled = result.rowcount > 0
        logger.info(
            "Job cancel attempted",
            job_id=job_id,
            customer_id=scope.customer_id,
            cancelled=cancelled,
        )
        return CancelOutcome(cancelled=cancelled, job=job)
