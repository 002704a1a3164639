"""
Supabase Auth delegation.

MatLinks never stores passwords or issues tokens itself; signup, login,
password reset and email confirmation all go through Supabase Auth via
:class:`~matlinks.auth.client.SupabaseAuthClient`.
"""

from .client import AuthUser, SupabaseAuthClient, TokenPair
from .errors import AuthProviderError

__all__ = ["AuthProviderError", "AuthUser", "SupabaseAuthClient", "TokenPair"]
