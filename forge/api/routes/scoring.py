"""
api/routes/scoring.py
---------------------
Company scoring endpoints (internal; called by the scoring queue, cron jobs
and other services, guarded by the X-Service-Key header).

POST /company-scoring         — Score one company for one customer.
POST /company-scoring/worker  — Score a batch of queued pairs.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from forge.core.errors import BadRequestError
from forge.db.session import get_db
from forge.dependencies import require_service_key
from forge.schemas.scoring import (
    CompanyScoringRequest,
    CompanyScoringResponse,
    ScoringWorkerResponse,
)
from forge.services.scoring_service import ScoringService

router = APIRouter(
    prefix="/company-scoring",
    tags=["Company Scoring"],
    dependencies=[Depends(require_service_key)],
)


@router.post(
    "",
    response_model=CompanyScoringResponse,
    response_model_exclude_none=True,
    summary="Score a company for a customer with the LLM",
)
async def score_company(
    body: dict,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CompanyScoringResponse:
    """
    Skips (status 'skipped') when the pair was scored within the staleness
    window; otherwise calls the LLM once and stores the result on the
    customer_companies row.
    """
    # Any shape problem maps to one message.
    try:
        request = CompanyScoringRequest.model_validate(body)
    except ValidationError:
        raise BadRequestError("company_id and customer_id are required (valid UUIDs)")

    return await ScoringService.score_company(
        db, company_id=request.company_id, customer_id=request.customer_id
    )


@router.post(
    "/worker",
    response_model=ScoringWorkerResponse,
    summary="Score a batch of pending queue rows",
)
async def run_scoring_worker(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ScoringWorkerResponse:
    return await ScoringService.run_worker(db)
