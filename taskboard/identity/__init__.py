"""Identity Provider capability and the local implementation."""

from .base import AuthError, AuthErrorCode, IdentityProvider, User
from .local import LocalIdentityProvider
from .messages import reset_error_message, sign_in_error_message

__all__ = [
    "IdentityProvider",
    "LocalIdentityProvider",
    "User",
    "AuthError",
    "AuthErrorCode",
    "reset_error_message",
    "sign_in_error_message",
]
