"""Admin auth schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from portfolio.schemas.common import RequestModel


class LoginRequest(RequestModel):
    # Checked by validate_login so the messages match the login form
    email: str = Field("", description="Admin email")
    password: str = Field("", description="Admin password")


class AdminResponse(BaseModel):
    id: str = Field(..., description="Admin UUID")
    email: str = Field(..., description="Admin email")
    display_name: str | None = Field(None, description="Display name")
    role: str = Field(..., description="Role (admin)")


class LoginResponse(BaseModel):
    ok: bool = True
    token: str = Field(..., description="Session token (also set as an httpOnly cookie)")
    expires_at: datetime = Field(..., description="Session expiry")
    user: AdminResponse


class SessionResponse(BaseModel):
    """Shape understood by the frontend gate: ok/authenticated/user."""

    ok: bool = Field(..., description="A live admin session exists")
    authenticated: bool = Field(..., description="Same as ok")
    user: AdminResponse | None = None
