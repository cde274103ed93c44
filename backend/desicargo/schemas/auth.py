from typing import Literal

from pydantic import BaseModel, EmailStr, Field, model_validator

from desicargo.models.user import UserRole
from desicargo.schemas.branch import BranchBrief


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole
    branch_id: str | None
    is_active: bool
    email_verified: bool
    permissions: list[str] = []

    model_config = {"from_attributes": True}


# ── Sign-up (self-service, pending email verification) ──────

class SignUpRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    confirm_password: str
    role: UserRole = UserRole.STAFF
    branch_id: str | None = None

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class SignUpResponse(BaseModel):
    user: UserOut
    message: str
    # Only returned outside production, where no mail is sent
    verification_token: str | None = None


class VerifyEmailRequest(BaseModel):
    token: str


# ── Sign-in ──────────────────────────────────────────────────

class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SessionOut(BaseModel):
    """Resolved application identity: user record plus assigned branch."""
    user: UserOut
    branch: BranchBrief | None = None


class TokenResponse(SessionOut):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


# ── Password reset ───────────────────────────────────────────

class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ForgotPasswordResponse(BaseModel):
    message: str
    reset_token: str | None = None


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(..., min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


# ── Route guard ──────────────────────────────────────────────

class AccessDecision(BaseModel):
    path: str
    allowed: bool
    redirect: Literal["/signin", "/unauthorized"] | None = None
