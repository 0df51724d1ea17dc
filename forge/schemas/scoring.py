"""
schemas/scoring.py
------------------
Company scoring request / LLM result / response models.

CompanyScoringResult is the strict contract for the LLM's structured output:
exactly three fields, numeric score in [0, 10] (an integer stays an integer),
non-blank strings, nothing else. It is validated with model_validate on the
parsed JSON.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"


class CompanyScoringRequest(BaseModel):
    company_id: str = Field(..., pattern=UUID_PATTERN)
    customer_id: str = Field(..., pattern=UUID_PATTERN)


class CompanyScoringResult(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True, str_strip_whitespace=True)

    score: Union[int, float] = Field(..., ge=0, le=10)
    short_description: str = Field(..., min_length=1)
    full_description: str = Field(..., min_length=1)


class CompanyScoringResponse(BaseModel):
    status: Literal["completed", "skipped"]
    score: Optional[Union[int, float]] = None
    short_description: Optional[str] = None
    full_description: Optional[str] = None
    reason: Optional[str] = None


class ScoringWorkerResponse(BaseModel):
    processed: int
    completed: int
    failed: int
