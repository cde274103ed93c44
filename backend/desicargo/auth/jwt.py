"""JWT token creation and decoding.

Token claims:
  - sub:            user ID
  - role:           user role string
  - permissions:    list of effective permission strings (access tokens only)
  - branch_id:      assigned branch, if any
  - type:           "access" | "refresh" | "verify" | "reset"
  - iat:            issue timestamp (compared against per-user revocation)
  - jti:            unique token id
  - exp:            expiry timestamp

"verify" and "reset" are single-purpose action tokens handed out by sign-up
and forgot-password; they are never accepted as bearer credentials.
"""

import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from desicargo.config import settings

ALGORITHM = settings.jwt_algorithm

ACTION_TOKEN_TYPES = ("verify", "reset")


def _stamp(payload: dict) -> dict:
    payload["iat"] = datetime.now(timezone.utc)
    payload["jti"] = uuid.uuid4().hex
    return payload


def create_access_token(
    user_id: str,
    role: str,
    permissions: list[str],
    branch_id: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": user_id,
        "role": role,
        "permissions": permissions,
        "type": "access",
        "exp": expire,
    }
    if branch_id:
        payload["branch_id"] = branch_id
    return jwt.encode(_stamp(payload), settings.secret_key, algorithm=ALGORITHM)


def create_refresh_token(user_id: str, role: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days)
    payload = {
        "sub": user_id,
        "role": role,
        "type": "refresh",
        "exp": expire,
    }
    return jwt.encode(_stamp(payload), settings.secret_key, algorithm=ALGORITHM)


def create_action_token(user_id: str, purpose: str) -> str:
    """Short-lived token for email verification or password reset."""
    if purpose not in ACTION_TOKEN_TYPES:
        raise ValueError(f"Unknown action token type: {purpose}")
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.action_token_expire_minutes
    )
    payload = {"sub": user_id, "type": purpose, "exp": expire}
    return jwt.encode(_stamp(payload), settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}
