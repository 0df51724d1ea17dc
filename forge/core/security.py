"""
core/security.py
----------------
Password hashing, JWT access tokens and the internal service-key check.

Token claims:
  sub          user_id
  customer_id  tenant the user belongs to (None for platform/system users)
  role         'admin' | 'user'
"""

import hmac
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt
from passlib.context import CryptContext

from forge.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


# ── Password Utilities ────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the plain-text password."""
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ── JWT Utilities ─────────────────────────────────────────────────────────────

def create_access_token(
    subject: str,
    customer_id: Optional[str],
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Mint a signed JWT for a user.

    Args:
        subject: User id (stored in 'sub').
        customer_id: Tenant id, or None for users outside any tenant.
        role: 'admin' | 'user'
        expires_delta: Optional custom expiry; defaults to settings value.
    """
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload: Dict[str, Any] = {
        "sub": subject,
        "customer_id": customer_id,
        "role": role,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Raises:
        JWTError: If the token is invalid, expired, or tampered with.
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


# ── Service key ───────────────────────────────────────────────────────────────

def service_key_matches(candidate: Optional[str]) -> bool:
    """True when no service key is configured or the candidate matches it."""
    if not settings.SERVICE_API_KEY:
        return True
    if not candidate:
        return False
    return hmac.compare_digest(candidate, settings.SERVICE_API_KEY)
