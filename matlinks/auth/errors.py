"""Auth exceptions."""

from __future__ import annotations

from typing import Optional


class AuthProviderError(Exception):
    """Supabase Auth rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int = 400, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.original_error = original_error
