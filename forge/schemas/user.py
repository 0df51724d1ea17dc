"""
schemas/user.py
---------------
Pydantic models for login and user responses.

hashed_password is never included in any response schema.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class UserRead(BaseModel):
    user_id: str
    email: str
    full_name: Optional[str] = None
    role: str
    customer_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserRead
