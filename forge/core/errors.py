"""
core/errors.py
--------------
Flat error taxonomy shared by every handler.

Services raise an ApiError where the problem is detected; main.py turns it
into a JSON body at the outer boundary:

    {"detail": "<message>", "code": "<optional machine code>"}

Status mapping:
  400  malformed input, missing enrichment data, unusable AI output
  403  caller has no tenant (customer) scope
  404  missing row, or a row the caller's tenant scope cannot see
  409  duplicate segment name, job already terminal
  500  LLM / parse / persistence failures
"""

from typing import Optional

from fastapi import status
from pydantic_core import PydanticCustomError


class ApiError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.code = code

    def to_dict(self) -> dict:
        body = {"detail": self.message}
        if self.code:
            body["code"] = self.code
        return body


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT


class UpstreamError(ApiError):
    """LLM provider, response parsing or persistence failure."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# ── Request body validation ───────────────────────────────────────────────────

INPUT_ERROR_TYPE = "invalid_input"


def input_error(message: str) -> PydanticCustomError:
    """
    Raise from a pydantic validator to have `message` returned verbatim as
    the 400 detail (without the usual "field: " prefix).
    """
    return PydanticCustomError(INPUT_ERROR_TYPE, message)
