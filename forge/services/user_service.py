"""
services/user_service.py
------------------------
User lookup and credential verification.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from forge.core.security import verify_password
from forge.models.user import User


class UserService:

    @staticmethod
    async def authenticate(
        db: AsyncSession, email: str, password: str
    ) -> Optional[User]:
        """
        Verify credentials and return the User if valid, else None.
        Email lookup is case-insensitive.
        """
        user = await db.scalar(select(User).where(User.email == email.lower()))
        if user is None or not verify_password(password, user.hashed_password):
            return None
        return user

    @staticmethod
    async def get_user(
        db: AsyncSession, user_id: str, customer_id: Optional[str]
    ) -> Optional[User]:
        """Load the user behind a token; the token's customer must still match."""
        stmt = select(User).where(User.user_id == user_id)
        if customer_id is None:
            stmt = stmt.where(User.customer_id.is_(None))
        else:
            stmt = stmt.where(User.customer_id == customer_id)
        return await db.scalar(stmt)
