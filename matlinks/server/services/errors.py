"""
Service-layer exceptions.

Services raise these instead of ``HTTPException`` so they stay usable from
the cron jobs; the API translates them with the handler registered in
``matlinks.server.exception_handlers``.
"""

from __future__ import annotations


class ServiceError(Exception):
    """A request was understood but cannot be carried out."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    status_code = 404


class PermissionDeniedError(ServiceError):
    status_code = 403


class ConflictError(ServiceError):
    status_code = 409
