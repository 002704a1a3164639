"""
Exception handlers for the MatLinks server.

This package contains the handlers that turn provider and service errors
into JSON responses, plus the catch-all handler for unexpected failures.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
