"""Core utilities and security modules."""

from beautybook.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PaymentError,
    SideEffectFailure,
    ValidationError,
)
from beautybook.core.security import create_access_token, verify_token

__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "NotFoundError",
    "PaymentError",
    "SideEffectFailure",
    "ValidationError",
    "create_access_token",
    "verify_token",
]
