"""
Core infrastructure: configuration, logging and error types.
"""

from .config import Settings, get_settings
from .errors import (
    ConversionError,
    CultureAlreadyBoundError,
    IncompleteMemberError,
    InvariantViolationError,
    UnsupportedIndexError,
)
from .logging import ContextLogger, get_context_logger, get_logger, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "ConversionError",
    "CultureAlreadyBoundError",
    "IncompleteMemberError",
    "InvariantViolationError",
    "UnsupportedIndexError",
    "ContextLogger",
    "get_logger",
    "get_context_logger",
    "setup_logging",
]
