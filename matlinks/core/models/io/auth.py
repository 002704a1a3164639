"""
Authentication I/O models.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SignupRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str
    confirm_password: str


class AuthSession(BaseModel):
    """Tokens returned after a successful login."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"
    user_id: str
    role: str


class SignupResult(BaseModel):
    user_id: str
    email: str
    confirmation_required: bool = Field(description="True when Supabase still needs the email confirmed")


class MessageResponse(BaseModel):
    success: bool = True
    message: str
