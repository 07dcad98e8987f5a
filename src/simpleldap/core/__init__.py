"""
simpleldap Core Module

Foundational types and exceptions used by the directory components.

Components:
- types: AuthenticationOutcome, AuthResult
- exceptions: Exception taxonomy
"""

from simpleldap.core.types import AuthenticationOutcome, AuthResult
from simpleldap.core.exceptions import (
    SimpleLdapError,
    InvalidArgument,
    DirectoryConnectionError,
    AuthenticationFailedError,
    UserNotFoundError,
    IncorrectPasswordError,
    UnspecifiedAuthenticationError,
)

__all__ = [
    # Types
    "AuthenticationOutcome",
    "AuthResult",
    # Exceptions
    "SimpleLdapError",
    "InvalidArgument",
    "DirectoryConnectionError",
    "AuthenticationFailedError",
    "UserNotFoundError",
    "IncorrectPasswordError",
    "UnspecifiedAuthenticationError",
]
