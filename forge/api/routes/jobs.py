"""
api/routes/jobs.py
------------------
LLM job endpoints.

POST /llm-cancel  — Cancel a queued or running LLM job.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from forge.db.scoping import TenantScope
from forge.db.session import get_db
from forge.dependencies import tenant_scope_dependency
from forge.schemas.job import CancelJobRequest, CancelJobResponse
from forge.services.job_service import JobService
from forge.services.notification_service import NotificationService

router = APIRouter(tags=["LLM Jobs"])

get_job_scope = tenant_scope_dependency("User must belong to a customer to cancel jobs")


@router.post(
    "/llm-cancel",
    response_model=CancelJobResponse,
    summary="Cancel a queued or running LLM job",
)
async def cancel_job(
    body: CancelJobRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: Annotated[TenantScope, Depends(get_job_scope)],
) -> CancelJobResponse:
    """
    404 covers both missing jobs and jobs the caller may not see.
    A job that finishes while this request runs yields cancelled=false.
    """
    outcome = await JobService.cancel_job(db, scope, body.job_id)

    if outcome.cancelled and outcome.job.user_id:
        background_tasks.add_task(
            NotificationService.job_cancelled,
            outcome.job.customer_id,
            outcome.job.user_id,
            outcome.job.id,
            outcome.job.feature_slug,
        )

    return CancelJobResponse(
        cancelled=outcome.cancelled,
        job_id=body.job_id,
        message=outcome.message,
    )
