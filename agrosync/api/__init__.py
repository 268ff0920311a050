"""
AgroSync API Module
"""

from .entities import router as entities_router
from .sync import router as sync_router
from .error_handling import APIError, ValidationAPIError, register_error_handlers

__all__ = [
    'entities_router',
    'sync_router',
    'APIError',
    'ValidationAPIError',
    'register_error_handlers'
]
