"""
services/segment_ai_service.py
------------------------------
Turn a free-text audience description into a proposed segment
(name + filters). Nothing is persisted here; the client saves the proposal
through the regular create endpoint.

The model only sees the industry / company-size vocabularies that exist at
request time (read fresh, no caching). Its answer is then reconciled against
the same vocabularies:
  employees   single string → [vocabulary value] on a case-insensitive match
  categories  kept only when they match an industry, re-cased to the vocabulary
Unmatched values are dropped silently.
"""

import json
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from forge.core.config import settings
from forge.core.errors import BadRequestError, UpstreamError
from forge.core.logging import get_logger
from forge.models.option import OptionCompanySize, OptionIndustry
from forge.schemas.segment import (
    AiSegmentResponse,
    RawAiSegment,
    RawAiSegmentFilters,
    SegmentFilters,
)
from forge.services.llm_service import llm_service
from forge.services.prompts import SEGMENT_RESPONSE_FORMAT, build_segment_system_prompt

logger = get_logger(__name__)

SEGMENT_TEMPERATURE = 0.2


def _match(value: str, vocabulary: list[str]) -> Optional[str]:
    lowered = value.lower()
    for candidate in vocabulary:
        if candidate.lower() == lowered:
            return candidate
    return None


def map_filters(
    raw: RawAiSegmentFilters, industries: list[str], company_sizes: list[str]
) -> SegmentFilters:
    mapped = SegmentFilters()

    if raw.country:
        mapped.country = raw.country
    if raw.location:
        mapped.location = raw.location

    if raw.employees:
        size = _match(raw.employees, company_sizes)
        if size is not None:
            mapped.employees = [size]

    if raw.categories:
        categories = [
            match
            for match in (_match(category, industries) for category in raw.categories)
            if match is not None
        ]
        if categories:
            mapped.categories = categories

    if raw.technographics:
        mapped.technographics = raw.technographics

    return mapped


class SegmentAiService:

    @staticmethod
    async def load_vocabularies(db: AsyncSession) -> tuple[list[str], list[str]]:
        industries = list(
            (await db.scalars(select(OptionIndustry.value).order_by(OptionIndustry.value))).all()
        )
        company_sizes = list(
            (
                await db.scalars(
                    select(OptionCompanySize.value).order_by(OptionCompanySize.company_size_id)
                )
            ).all()
        )
        return industries, company_sizes

    @staticmethod
    async def generate(
        db: AsyncSession, description: str, customer_id: str
    ) -> AiSegmentResponse:
        industries, company_sizes = await SegmentAiService.load_vocabularies(db)

        model = settings.segment_model
        logger.info(
            "Generating segment",
            customer_id=customer_id,
            model=model,
            description_length=len(description),
        )
        content = await llm_service.complete(
            system_prompt=build_segment_system_prompt(industries, company_sizes),
            user_message=description,
            response_format=SEGMENT_RESPONSE_FORMAT,
            temperature=SEGMENT_TEMPERATURE,
            purpose="segment_generation",
            model=model,
            max_tokens=settings.LLM_MAX_TOKENS,
            customer_id=customer_id,
        )
        if not content:
            raise UpstreamError("AI generated empty response")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise UpstreamError("AI generated invalid response format") from exc

        try:
            raw = RawAiSegment.model_validate(parsed)
        except ValidationError as exc:
            logger.warning("Segment output failed validation", errors=exc.errors())
            raise UpstreamError("AI did not generate a valid segment") from exc

        if raw.filters.is_empty():
            raise BadRequestError(
                "AI could not generate filters from the description. "
                "Please provide more specific criteria."
            )

        filters = map_filters(raw.filters, industries, company_sizes)
        logger.info("Segment generated", customer_id=customer_id, name=raw.name)
        return AiSegmentResponse(name=raw.name, filters=filters)
