"""
Middleware modules for the MatLinks server.

This package contains custom middleware for request/response logging,
timing and error tracking.
"""

from .logfire_middleware import LogfireMiddleware

__all__ = ["LogfireMiddleware"]
