"""
Core utilities and configuration for MatLinks.

This package provides core functionality including logging configuration,
monitoring, database setup, and other shared utilities.
"""

from matlinks.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
