"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_current_user        → decode JWT, load user from DB, return User
  get_current_user_optional → same, but None for anonymous requests
  require_role(...)       → restrict to specific roles
  require_permission(...) → restrict to specific granular permissions
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.jwt import decode_token
from desicargo.auth.permissions import has_permission
from desicargo.auth.revocation import TokenRevocation
from desicargo.database import get_db
from desicargo.models.user import User, UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/signin")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/signin", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode the JWT, load the user, and return it.

    The decoded payload and the raw token are stashed on the user object
    (`_token_payload`, `_token`) so downstream deps and sign-out can read
    them without re-decoding.
    """
    payload = decode_token(token)
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise _unauthorized("Invalid or expired token")

    if await TokenRevocation.is_revoked(token):
        raise _unauthorized("Token has been revoked")

    if await TokenRevocation.is_user_revoked(user_id, payload.get("iat")):
        raise _unauthorized("Session expired. Please sign in again.")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise _unauthorized("User not found or inactive")

    user._token_payload = payload  # type: ignore[attr-defined]
    user._token = token  # type: ignore[attr-defined]
    return user


async def get_current_user_optional(
    token: str | None = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Like get_current_user, but anonymous callers resolve to None.

    An expired, revoked or otherwise unusable token counts as anonymous.
    """
    if not token:
        return None
    try:
        return await get_current_user(token=token, db=db)
    except HTTPException as e:
        if e.status_code != status.HTTP_401_UNAUTHORIZED:
            raise
        return None


def require_role(*roles: UserRole):
    """Dependency factory — restrict to one or more roles.

    Usage:
        @router.get("/users")
        async def list_users(user: User = Depends(require_role(UserRole.ADMIN))):
            ...
    """
    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(r.value for r in roles)}",
            )
        return user

    return _check


def require_permission(*perms: str):
    """Dependency factory — restrict to users who hold ALL listed permissions.

    Reads permissions from the JWT claims, so this is a zero-DB-hit check.

    Usage:
        @router.post("/bookings")
        async def create(user: User = Depends(require_permission("bookings.write"))):
            ...
    """
    async def _check(user: User = Depends(get_current_user)) -> User:
        payload: dict = getattr(user, "_token_payload", {})
        user_perms: list[str] = payload.get("permissions", [])

        missing = [p for p in perms if not has_permission(user_perms, p)]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permissions: {', '.join(missing)}",
            )
        return user

    return _check
