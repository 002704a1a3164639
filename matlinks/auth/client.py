"""
Supabase Auth client wrapper.

Two Supabase clients are used:

- the *public* client (anon key) for end-user flows: sign up, sign in,
  password reset emails, OTP verification and token validation;
- the *admin* client (service role key) for privileged calls: setting a
  password for a verified user and inviting members.

Both are created lazily with session persistence and token refresh
disabled. Sign up, sign in and OTP verification leave the user's session on
the client that ran them, so those flows get a short-lived anon client of
their own instead of the shared one. The supabase SDK is synchronous, so
calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional

from supabase import AuthError, Client, create_client
from supabase.lib.client_options import ClientOptions

from matlinks.core.logging_config import get_logger

from .errors import AuthProviderError

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthUser:
    """The parts of a Supabase user MatLinks cares about."""

    id: str
    email: Optional[str]
    email_confirmed: bool = False

    @classmethod
    def from_supabase(cls, user: Any) -> "AuthUser":
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None),
            email_confirmed=getattr(user, "email_confirmed_at", None) is not None,
        )


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: Optional[str]
    expires_in: Optional[int]
    user: AuthUser


class SupabaseAuthClient:
    """Async facade over ``supabase.Client.auth``."""

    def __init__(self, url: str, anon_key: Optional[str], service_role_key: Optional[str] = None) -> None:
        self.url = url
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self._public: Optional[Client] = None
        self._admin: Optional[Client] = None

    @staticmethod
    def _create(url: str, key: str) -> Client:
        return create_client(url, key, options=ClientOptions(auto_refresh_token=False, persist_session=False))

    def _public_key(self) -> str:
        key = self.anon_key or self.service_role_key
        if not key:
            raise AuthProviderError("Supabase is not configured", status_code=503)
        return key

    @property
    def public(self) -> Client:
        if self._public is None:
            self._public = self._create(self.url, self._public_key())
        return self._public

    def session_client(self) -> Client:
        """New anon client for one user-session flow, discarded afterwards."""
        return self._create(self.url, self._public_key())

    @property
    def admin(self) -> Client:
        if self._admin is None:
            if not self.service_role_key:
                raise AuthProviderError("Supabase service role key is not configured", status_code=503)
            self._admin = self._create(self.url, self.service_role_key)
        return self._admin

    async def _call(self, operation: str, func: Callable[..., Any], *args: Any, status_code: int = 400) -> Any:
        try:
            return await asyncio.to_thread(partial(func, *args))
        except AuthError as e:
            logger.warning(f"Supabase auth {operation} failed: {e}")
            raise AuthProviderError(str(e), status_code=status_code, original_error=e) from e

    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        """Validate an access token; None when Supabase rejects it."""
        try:
            response = await self._call("get_user", self.public.auth.get_user, access_token, status_code=401)
        except AuthProviderError:
            return None
        if response is None or response.user is None:
            return None
        return AuthUser.from_supabase(response.user)

    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> tuple[AuthUser, bool]:
        """Register a user.

        Returns:
            The new user and whether email confirmation is still required.
        """
        credentials: dict[str, Any] = {"email": email, "password": password}
        if full_name:
            credentials["options"] = {"data": {"full_name": full_name}}
        response = await self._call("sign_up", self.session_client().auth.sign_up, credentials)
        if response.user is None:
            raise AuthProviderError("Signup did not return a user")
        return AuthUser.from_supabase(response.user), response.session is None

    async def sign_in(self, email: str, password: str) -> TokenPair:
        response = await self._call(
            "sign_in_with_password",
            self.session_client().auth.sign_in_with_password,
            {"email": email, "password": password},
            status_code=401,
        )
        if response.session is None or response.user is None:
            raise AuthProviderError("Invalid login credentials", status_code=401)
        return TokenPair(
            access_token=response.session.access_token,
            refresh_token=response.session.refresh_token,
            expires_in=response.session.expires_in,
            user=AuthUser.from_supabase(response.user),
        )

    async def send_password_reset(self, email: str, redirect_to: str) -> None:
        await self._call(
            "reset_password_for_email",
            self.public.auth.reset_password_for_email,
            email,
            {"redirect_to": redirect_to},
        )

    async def update_password(self, user_id: str, password: str) -> None:
        await self._call(
            "update_user_by_id", self.admin.auth.admin.update_user_by_id, user_id, {"password": password}
        )

    async def verify_otp(self, token_hash: str, otp_type: str) -> AuthUser:
        response = await self._call(
            "verify_otp", self.session_client().auth.verify_otp, {"token_hash": token_hash, "type": otp_type}
        )
        if response.user is None:
            raise AuthProviderError("Verification link is invalid or has expired")
        return AuthUser.from_supabase(response.user)

    async def invite_user(self, email: str, redirect_to: Optional[str] = None) -> AuthUser:
        options = {"redirect_to": redirect_to} if redirect_to else {}
        response = await self._call(
            "invite_user_by_email", self.admin.auth.admin.invite_user_by_email, email, options
        )
        if response.user is None:
            raise AuthProviderError("Invite sent, but user data was not returned")
        return AuthUser.from_supabase(response.user)
