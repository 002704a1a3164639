"""
Authentication endpoints.

Identity is delegated to Supabase Auth. These endpoints proxy the
password flows and keep the ``profiles`` row in step with the auth user.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, status

from matlinks.auth.errors import AuthProviderError
from matlinks.core.database.entities.profiles import Profile, UserRole
from matlinks.core.logging_config import get_logger
from matlinks.core.models.io.auth import (
    AuthSession,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    SignupResult,
)
from matlinks.core.models.io.profiles import ProfileRead
from matlinks.server.core.config import settings
from matlinks.server.core.constant import MIN_PASSWORD_LENGTH
from matlinks.server.services.deps import AuthClientDep, CurrentUserDep, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])

PASSWORD_TOO_SHORT = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"


@router.post(
    "/signup",
    response_model=SignupResult,
    status_code=status.HTTP_201_CREATED,
    summary="Sign Up",
    description="Register a new member with Supabase Auth and create their student profile.",
    responses={400: {"description": "Password too short or Supabase rejected the signup"}},
)
async def signup(payload: SignupRequest, session: SessionDep, auth_client: AuthClientDep) -> SignupResult:
    """
    Register a member.

    - **email**: Login email.
    - **password**: At least 6 characters.
    - **full_name**: Optional display name.
    """
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PASSWORD_TOO_SHORT)

    email = payload.email.lower()
    user, confirmation_required = await auth_client.sign_up(email, payload.password, payload.full_name)

    profile = await session.get(Profile, user.id)
    if profile is None:
        profile = Profile(id=user.id, email=email, full_name=payload.full_name, role=UserRole.STUDENT.value)
        session.add(profile)
        await session.commit()
    logger.info(f"Signed up {email} ({user.id}), confirmation required: {confirmation_required}")
    return SignupResult(user_id=user.id, email=email, confirmation_required=confirmation_required)


@router.post(
    "/login",
    response_model=AuthSession,
    summary="Log In",
    responses={
        401: {"description": "Invalid login credentials"},
        403: {"description": "No profile for this user"},
    },
)
async def login(payload: LoginRequest, session: SessionDep, auth_client: AuthClientDep) -> AuthSession:
    tokens = await auth_client.sign_in(payload.email.lower(), payload.password)
    profile = await session.get(Profile, tokens.user.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Profile not found")
    return AuthSession(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
        user_id=profile.id,
        role=profile.role,
    )


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request Password Reset",
    description="Email a password reset link. The response is the same whether or not the account exists.",
)
async def forgot_password(payload: ForgotPasswordRequest, auth_client: AuthClientDep) -> MessageResponse:
    redirect_to = f"{settings.app_url.rstrip('/')}/reset-password"
    try:
        await auth_client.send_password_reset(payload.email.lower(), redirect_to)
    except AuthProviderError as e:
        logger.warning(f"Password reset email for {payload.email} not sent: {e}")
    return MessageResponse(message="If an account exists for this email, a password reset link has been sent")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset Password",
    description="Set a new password for the signed-in user.",
    responses={400: {"description": "Passwords do not match or too short"}},
)
async def reset_password(
    payload: ResetPasswordRequest, user: CurrentUserDep, auth_client: AuthClientDep
) -> MessageResponse:
    if payload.password != payload.confirm_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Passwords do not match")
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PASSWORD_TOO_SHORT)

    await auth_client.update_password(user.id, payload.password)
    logger.info(f"Password updated for {user.id}")
    return MessageResponse(message="Password updated successfully")


@router.get(
    "/confirm",
    summary="Confirm Email",
    description="Verify the token hash from a Supabase confirmation or recovery link.",
    responses={400: {"description": "Link invalid or expired"}},
)
async def confirm(
    token_hash: str,
    auth_client: AuthClientDep,
    type: str = "email",
    next: Optional[str] = None,
) -> dict:
    """
    Verify an email link.

    - **token_hash**: Token hash from the link.
    - **type**: OTP type, e.g. 'email', 'signup', 'recovery' or 'invite'.
    - **next**: Path the front end should continue to.
    """
    await auth_client.verify_otp(token_hash, type)
    return {"verified": True, "next": next or "/"}


@router.get("/me", response_model=ProfileRead, summary="Current User")
async def me(user: CurrentUserDep) -> ProfileRead:
    return ProfileRead.model_validate(user)
