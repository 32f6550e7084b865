"""
Utility functions for docquery.
"""

from .logging import get_logger, setup_logger, resolve_level, LogContext
from .validation import (
    validate_field_name,
    validate_field_path,
    validate_limit,
    validate_page_size,
)

__all__ = [
    "get_logger",
    "setup_logger",
    "resolve_level",
    "LogContext",
    "validate_field_name",
    "validate_field_path",
    "validate_limit",
    "validate_page_size",
]
