"""
schemas/segment.py
------------------
Pydantic models for segments and AI segment generation.

Naming convention:
  SegmentCreate / SegmentUpdate  → inbound request bodies
  SegmentRead                    → outbound full row
  RawAiSegment                   → strict shape of the LLM's JSON answer
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from forge.core.errors import input_error

SEGMENT_NAME_MIN = 3
SEGMENT_NAME_MAX = 100
DESCRIPTION_MIN = 3
DESCRIPTION_MAX = 1000


class SegmentFilters(BaseModel):
    """Filter definition stored on a segment."""
    model_config = ConfigDict(extra="forbid")

    country: Optional[str] = None
    location: Optional[str] = None
    categories: Optional[list[str]] = None
    employees: Optional[list[str]] = None
    technographics: Optional[list[str]] = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SegmentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=SEGMENT_NAME_MIN,
        max_length=SEGMENT_NAME_MAX,
        examples=["SaaS companies in Germany"],
    )
    filters: SegmentFilters


class SegmentUpdate(SegmentCreate):
    segment_id: str = Field(..., min_length=1)


class SegmentRead(BaseModel):
    list_id: str
    customer_id: str
    user_id: Optional[str] = None
    list_type: str
    name: str
    description: Optional[str] = None
    filters: Optional[dict[str, Any]] = None
    status: str
    subtype: str
    is_static: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SegmentListItem(SegmentRead):
    company_count: int = 0


# ── AI generation ─────────────────────────────────────────────────────────────

class SegmentAiRequest(BaseModel):
    description: Optional[str] = Field(
        default=None,
        validate_default=True,
        examples=["Fintech startups in Berlin with 11-50 employees using Stripe"],
    )

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise input_error("Description is required")
        value = value.strip()
        if len(value) < DESCRIPTION_MIN:
            raise input_error(f"Description must be at least {DESCRIPTION_MIN} characters")
        if len(value) > DESCRIPTION_MAX:
            raise input_error(f"Description must be less than {DESCRIPTION_MAX} characters")
        return value


class RawAiSegmentFilters(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    country: Optional[str] = None
    location: Optional[str] = None
    employees: Optional[str] = None
    categories: Optional[list[str]] = None
    technographics: Optional[list[str]] = None

    def is_empty(self) -> bool:
        return not (
            self.country
            or self.location
            or self.employees
            or self.categories
            or self.technographics
        )


class RawAiSegment(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    filters: RawAiSegmentFilters


class AiSegmentResponse(BaseModel):
    name: str
    filters: SegmentFilters
