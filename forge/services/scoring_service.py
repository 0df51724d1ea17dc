"""
services/scoring_service.py
---------------------------
LLM-backed company scoring for one (customer, company) pair, plus the
queue worker that scores pending pairs in batches.

Lookup chain for a single score:
  company exists → customer exists → customer_companies row exists
  → recently scored? (skip) → freshest Diffbot snapshot → LLM → persist

The staleness check is a soft throttle, not a lock: two concurrent requests
for the same pair can both pass it, both call the LLM and both write.
"""

import json
from datetime import timedelta
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from forge.core.config import settings
from forge.core.errors import ApiError, BadRequestError, NotFoundError, UpstreamError
from forge.core.logging import get_logger
from forge.db.base import as_utc, utcnow
from forge.models.company import (
    Company,
    CompanyMetadata,
    CompanyScoringQueue,
    CustomerCompany,
    ScoringQueueStatus,
)
from forge.models.customer import Customer
from forge.schemas.scoring import (
    CompanyScoringResponse,
    CompanyScoringResult,
    ScoringWorkerResponse,
)
from forge.services.llm_service import llm_service
from forge.services.prompts import (
    COMPANY_SCORING_RESPONSE_FORMAT,
    COMPANY_SCORING_SYSTEM_PROMPT,
    build_scoring_user_message,
)

logger = get_logger(__name__)

SCORING_TEMPERATURE = 0.7


class ScoringService:

    @staticmethod
    async def score_company(
        db: AsyncSession, company_id: str, customer_id: str
    ) -> CompanyScoringResponse:
        """
        Score one company for one customer.

        Returns a 'skipped' response without calling the LLM when the pair was
        scored inside the staleness window.
        """
        company = await db.scalar(
            select(Company.company_id).where(Company.company_id == company_id)
        )
        if company is None:
            raise NotFoundError("Company not found")

        customer = await db.scalar(
            select(Customer.customer_id).where(Customer.customer_id == customer_id)
        )
        if customer is None:
            raise NotFoundError("Customer not found")

        customer_company = await db.scalar(
            select(CustomerCompany).where(
                CustomerCompany.customer_id == customer_id,
                CustomerCompany.company_id == company_id,
            )
        )
        if customer_company is None:
            raise NotFoundError("Customer company record not found")

        last_scored = customer_company.scoring_results_updated_at
        if last_scored is not None:
            cutoff = utcnow() - timedelta(days=settings.SCORING_STALENESS_DAYS)
            if as_utc(last_scored) > cutoff:
                logger.info(
                    "Scoring skipped, recently scored",
                    company_id=company_id,
                    customer_id=customer_id,
                )
                return CompanyScoringResponse(status="skipped", reason="recently_scored")

        diffbot_json = await db.scalar(
            select(CompanyMetadata.diffbot_json)
            .where(CompanyMetadata.company_id == company_id)
            .order_by(CompanyMetadata.updated_at.desc())
            .limit(1)
        )
        if not diffbot_json:
            raise BadRequestError(
                "Diffbot data not found for company; run segment processing first."
            )

        result = await ScoringService._evaluate(diffbot_json, customer_id)

        now = utcnow()
        try:
            await db.execute(
                update(CustomerCompany)
                .where(
                    CustomerCompany.customer_id == customer_id,
                    CustomerCompany.company_id == company_id,
                )
                .values(
                    last_scoring_results=result.model_dump(),
                    scoring_results_updated_at=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            await db.flush()
        except SQLAlchemyError as exc:
            logger.error("Failed to save scoring results", company_id=company_id, error=str(exc))
            raise UpstreamError("Failed to save scoring results") from exc

        logger.info(
            "Company scored",
            company_id=company_id,
            customer_id=customer_id,
            score=result.score,
        )
        return CompanyScoringResponse(status="completed", **result.model_dump())

    @staticmethod
    async def _evaluate(diffbot_json: dict, customer_id: str) -> CompanyScoringResult:
        content = await llm_service.complete(
            system_prompt=COMPANY_SCORING_SYSTEM_PROMPT,
            user_message=build_scoring_user_message(json.dumps(diffbot_json)),
            response_format=COMPANY_SCORING_RESPONSE_FORMAT,
            temperature=SCORING_TEMPERATURE,
            purpose="company_scoring",
            customer_id=customer_id,
        )
        if not content:
            raise UpstreamError("No response content from OpenAI")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise UpstreamError("Failed to parse OpenAI response") from exc

        try:
            return CompanyScoringResult.model_validate(parsed)
        except ValidationError as exc:
            logger.warning("Scoring output failed validation", errors=exc.errors())
            raise UpstreamError(
                "OpenAI response missing valid score or descriptions"
            ) from exc

    # ── Queue worker ──────────────────────────────────────────────────────────

    @staticmethod
    async def _finish_queue_row(
        db: AsyncSession, queue_id: str, status: ScoringQueueStatus, error: Optional[str]
    ) -> None:
        await db.execute(
            update(CompanyScoringQueue)
            .where(CompanyScoringQueue.id == queue_id)
            .values(status=status.value, error_message=error, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await db.commit()

    @staticmethod
    async def run_worker(db: AsyncSession) -> ScoringWorkerResponse:
        """
        Score a batch of pending queue rows.

        Rows left in 'processing' longer than the stale window (a crashed
        worker) go back to 'pending' first. The claim is committed before any
        LLM call. Each row is then committed on its own as 'completed' (scored
        or skipped) or 'failed' with the error message of whatever it raised.
        """
        stale_before = utcnow() - timedelta(minutes=settings.SCORING_WORKER_STALE_MINUTES)
        await db.execute(
            update(CompanyScoringQueue)
            .where(
                CompanyScoringQueue.status == ScoringQueueStatus.processing.value,
                CompanyScoringQueue.updated_at < stale_before,
            )
            .values(status=ScoringQueueStatus.pending.value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )

        claimed = (
            await db.execute(
                select(
                    CompanyScoringQueue.id,
                    CompanyScoringQueue.customer_id,
                    CompanyScoringQueue.company_id,
                )
                .where(CompanyScoringQueue.status == ScoringQueueStatus.pending.value)
                .order_by(CompanyScoringQueue.created_at)
                .limit(settings.SCORING_WORKER_BATCH_SIZE)
                .with_for_update(skip_locked=True)
            )
        ).all()

        if claimed:
            await db.execute(
                update(CompanyScoringQueue)
                .where(CompanyScoringQueue.id.in_([row.id for row in claimed]))
                .values(status=ScoringQueueStatus.processing.value, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
        await db.commit()

        completed = failed = 0
        for queue_id, customer_id, company_id in claimed:
            try:
                await ScoringService.score_company(db, company_id, customer_id)
            except Exception as exc:
                await db.rollback()
                error = exc.message if isinstance(exc, ApiError) else str(exc)
                logger.warning(
                    "Queued scoring failed",
                    queue_id=queue_id,
                    company_id=company_id,
                    error=error,
                )
                await ScoringService._finish_queue_row(
                    db, queue_id, ScoringQueueStatus.failed, error
                )
                failed += 1
            else:
                await ScoringService._finish_queue_row(
                    db, queue_id, ScoringQueueStatus.completed, None
                )
                completed += 1

        logger.info(
            "Scoring worker batch finished",
            processed=len(claimed),
            completed=completed,
            failed=failed,
        )
        return ScoringWorkerResponse(
            processed=len(claimed), completed=completed, failed=failed
        )
