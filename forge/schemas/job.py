"""
schemas/job.py
--------------
LLM job cancellation request / response.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from forge.core.errors import input_error


class CancelJobRequest(BaseModel):
    job_id: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("job_id", mode="before")
    @classmethod
    def require_job_id(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise input_error("job_id is required")
        return value


class CancelJobResponse(BaseModel):
    cancelled: bool
    job_id: str
    message: str
