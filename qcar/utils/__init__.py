"""Utility modules for configuration, logging, and error handling."""

from .config import Config
from .errors import ClaimsProcessingError, ErrorType

__all__ = [
    'Config',
    'ClaimsProcessingError',
    'ErrorType'
]
