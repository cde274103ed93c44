"""Auth routes: sign-up, email verification, sign-in/out, refresh, password reset.

Route overview:
  POST /signup           — self-service sign-up; account stays pending until verified
  POST /verify-email     — confirm the address with the verification token
  POST /signin           — email + password → access + refresh tokens and session
  POST /signout          — revoke the presented access token
  POST /refresh          — exchange a refresh token for new tokens
  GET  /me               — current session (user record + assigned branch)
  POST /forgot-password  — issue a password-reset token
  POST /reset-password   — set a new password with a reset token
  GET  /access?path=     — route-guard decision for a dashboard page

Outside production no mail is sent: verification and reset tokens are
returned in the response body instead.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.access import decide
from desicargo.auth.deps import get_current_user, get_current_user_optional
from desicargo.auth.jwt import (
    create_access_token,
    create_action_token,
    create_refresh_token,
    decode_token,
)
from desicargo.auth.password import hash_password, verify_password
from desicargo.auth.permissions import resolve_permissions
from desicargo.auth.revocation import TokenRevocation
from desicargo.config import settings
from desicargo.database import get_db
from desicargo.middleware.exceptions import AuthError, PermissionDeniedError
from desicargo.models.branch import Branch
from desicargo.models.user import User, UserRole
from desicargo.schemas.auth import (
    AccessDecision,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    RefreshRequest,
    ResetPasswordRequest,
    SessionOut,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
    TokenResponse,
    UserOut,
    VerifyEmailRequest,
)
from desicargo.schemas.branch import BranchBrief
from desicargo.schemas.common import MessageResponse
from desicargo.schemas.validators import ensure_uuid

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

def _expose_tokens() -> bool:
    return settings.environment != "production"


def _build_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        branch_id=user.branch_id,
        is_active=user.is_active,
        email_verified=user.email_verified,
        permissions=resolve_permissions(user.role.value),
    )


def _build_session(user: User) -> SessionOut:
    branch = BranchBrief.model_validate(user.branch) if user.branch else None
    return SessionOut(user=_build_user_out(user), branch=branch)


def _build_token_response(user: User) -> TokenResponse:
    session = _build_session(user)
    return TokenResponse(
        access_token=create_access_token(
            user_id=user.id,
            role=user.role.value,
            permissions=session.user.permissions,
            branch_id=user.branch_id,
        ),
        refresh_token=create_refresh_token(user_id=user.id, role=user.role.value),
        user=session.user,
        branch=session.branch,
    )


async def _consume_action_token(token: str, purpose: str) -> str:
    """Validate a single-use action token, revoke it, and return its subject."""
    payload = decode_token(token)
    user_id = payload.get("sub")
    if not user_id or payload.get("type") != purpose:
        raise AuthError("Invalid or expired token")
    if await TokenRevocation.is_revoked(token):
        raise AuthError("Token has already been used")
    await TokenRevocation.revoke_token(token, payload.get("exp", 0))
    return user_id


async def _get_user(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthError("Invalid or expired token")
    return user


# ── POST /signup ─────────────────────────────────────────────

@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignUpRequest, db: AsyncSession = Depends(get_db)):
    """Create a pending identity. Sign-in is refused until the email is verified.

    Self-service admin sign-up is only accepted while no administrator exists.
    """
    email = body.email.lower()
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise AuthError("Email already registered", error_code="EMAIL_TAKEN")

    if body.role == UserRole.ADMIN:
        admin_exists = await db.execute(
            select(User.id).where(User.role == UserRole.ADMIN).limit(1)
        )
        if admin_exists.first() is not None:
            raise PermissionDeniedError(
                "Administrator accounts are created by an existing administrator"
            )

    if body.branch_id:
        ensure_uuid(body.branch_id, "branch")
        branch = await db.execute(select(Branch.id).where(Branch.id == body.branch_id))
        if branch.first() is None:
            raise AuthError("Selected branch does not exist")

    user = User(
        name=body.name.strip(),
        email=email,
        hashed_password=hash_password(body.password),
        role=body.role,
        branch_id=body.branch_id or None,
        email_verified=False,
    )
    db.add(user)
    await db.flush()
    logger.info(f"New sign-up pending verification: {email} ({body.role.value})")

    token = create_action_token(user.id, "verify")
    return SignUpResponse(
        user=_build_user_out(user),
        message="Check your email to verify your account",
        verification_token=token if _expose_tokens() else None,
    )


# ── POST /verify-email ───────────────────────────────────────

@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(body: VerifyEmailRequest, db: AsyncSession = Depends(get_db)):
    user_id = await _consume_action_token(body.token, "verify")
    user = await _get_user(db, user_id)
    user.email_verified = True
    await db.flush()
    return MessageResponse(message="Email verified. You can now sign in.")


# ── POST /signin ─────────────────────────────────────────────

@router.post("/signin", response_model=TokenResponse)
async def signin(body: SignInRequest, db: AsyncSession = Depends(get_db)):
    """Email + password sign-in. Returns tokens plus the resolved session."""
    result = await db.execute(select(User).where(User.email == body.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(body.password, user.hashed_password):
        logger.warning(f"Failed sign-in for {body.email}")
        raise AuthError("Invalid email or password")
    if not user.is_active:
        raise PermissionDeniedError("Account deactivated")
    if not user.email_verified:
        raise AuthError("Email not verified", error_code="EMAIL_NOT_VERIFIED")

    return _build_token_response(user)


# ── POST /signout ────────────────────────────────────────────

@router.post("/signout", response_model=MessageResponse)
async def signout(user: User = Depends(get_current_user)):
    payload: dict = getattr(user, "_token_payload", {})
    revoked = await TokenRevocation.revoke_token(user._token, payload.get("exp", 0))  # type: ignore[attr-defined]
    if not revoked:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not sign out, please retry",
        )
    return MessageResponse(message="Signed out")


# ── POST /refresh ────────────────────────────────────────────

@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    payload = decode_token(body.refresh_token)
    user_id = payload.get("sub")
    if not user_id or payload.get("type") != "refresh":
        raise AuthError("Invalid refresh token")
    if await TokenRevocation.is_revoked(body.refresh_token) or await TokenRevocation.is_user_revoked(user_id, payload.get("iat")):
        raise AuthError("Session expired. Please sign in again.")

    user = await _get_user(db, user_id)
    if not user.is_active:
        raise PermissionDeniedError("Account deactivated")
    return _build_token_response(user)


# ── GET /me ──────────────────────────────────────────────────

@router.get("/me", response_model=SessionOut)
async def me(user: User = Depends(get_current_user)):
    return _build_session(user)


# ── Password reset ───────────────────────────────────────────

@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(body: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    """Issue a reset token. The response never reveals whether the email exists."""
    message = "If this email is registered, a reset link has been sent"
    result = await db.execute(select(User).where(User.email == body.email.lower()))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        return ForgotPasswordResponse(message=message)

    token = create_action_token(user.id, "reset")
    return ForgotPasswordResponse(
        message=message,
        reset_token=token if _expose_tokens() else None,
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    user_id = await _consume_action_token(body.token, "reset")
    user = await _get_user(db, user_id)
    user.hashed_password = hash_password(body.password)
    # Completing a reset proves control of the mailbox
    user.email_verified = True
    await db.flush()
    logger.info(f"Password reset for {user.email}")
    return MessageResponse(message="Password updated. You can now sign in.")


# ── GET /access ──────────────────────────────────────────────

@router.get("/access", response_model=AccessDecision)
async def access(path: str, user: User | None = Depends(get_current_user_optional)):
    """Route-guard decision for ``path`` given the caller's identity."""
    allowed, redirect = decide(path, user.role.value if user else None)
    return AccessDecision(path=path, allowed=allowed, redirect=redirect)
