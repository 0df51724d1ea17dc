"""
dependencies.py
---------------
FastAPI dependency injection functions for authentication and tenant scoping.

Flow:
  1. OAuth2PasswordBearer extracts the Bearer token from the Authorization header.
  2. decode_access_token validates and parses the JWT.
  3. get_current_user re-loads the User, verifying the token's sub and
     customer_id against persisted data (401 otherwise).
  4. get_tenant_scope requires a customer and returns the TenantScope every
     tenant-facing query is built from (403 for users without a customer).
  5. require_service_key guards internal endpoints called by other services.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from forge.core.errors import ForbiddenError
from forge.core.logging import get_logger
from forge.core.security import decode_access_token, service_key_matches
from forge.db.scoping import TenantScope
from forge.db.session import get_db
from forge.models.user import User
from forge.services.user_service import UserService

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Decode the JWT, then load and return the full User from the database.
    Raises 401 if the token is invalid or the user no longer exists.
    """
    try:
        payload = decode_access_token(token)
    except JWTError as exc:
        logger.warning("JWT decode failed", error=str(exc))
        raise _CREDENTIALS_EXCEPTION

    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    user = await UserService.get_user(db, user_id, payload.get("customer_id"))
    if user is None:
        logger.warning("User from valid JWT not found in DB", user_id=user_id)
        raise _CREDENTIALS_EXCEPTION

    return user


def tenant_scope_dependency(message: str = "User must belong to a customer"):
    """
    Build a dependency returning the caller's TenantScope.
    `message` is the 403 text for callers without a customer.
    """

    async def get_tenant_scope(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> TenantScope:
        if not current_user.customer_id:
            raise ForbiddenError(message)
        return TenantScope(
            customer_id=current_user.customer_id,
            user_id=current_user.user_id,
            is_admin=current_user.is_admin,
        )

    return get_tenant_scope


get_tenant_scope = tenant_scope_dependency()


async def require_service_key(
    x_service_key: Annotated[Optional[str], Header()] = None,
) -> None:
    if not service_key_matches(x_service_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid service key",
        )
