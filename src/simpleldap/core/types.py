"""
simpleldap Core Types

Value types shared by the directory components.

Design Principles:
- Immutable: all types use frozen attrs
- Per-call: outcomes are produced for one attempt and never persisted
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Optional

import attrs
from attrs import field, validators


# =============================================================================
# ENUMS
# =============================================================================


class AuthenticationOutcome(Enum):
    """Classification of a single authentication attempt."""

    AUTHENTICATED = auto()
    USER_NOT_FOUND = auto()
    WRONG_PASSWORD = auto()
    CONNECTION_FAILED = auto()

    @property
    def is_rejection(self) -> bool:
        """True if the directory answered and said no."""
        return self in (
            AuthenticationOutcome.USER_NOT_FOUND,
            AuthenticationOutcome.WRONG_PASSWORD,
        )


# =============================================================================
# RESULT TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class AuthResult:
    """
    Result of an authentication attempt.

    Attributes:
        outcome: How the attempt was classified
        login: Login name that was checked
        dn: Resolved distinguished name (if the search found one)
        error_code: LDAP result code (if the directory reported one)
        error_message: Human-readable error message (if failure)
    """

    outcome: AuthenticationOutcome = field(
        validator=validators.instance_of(AuthenticationOutcome)
    )
    login: str
    dn: Optional[str] = None
    error_code: Optional[int] = None
    error_message: str = ""

    def __attrs_post_init__(self) -> None:
        if self.success:
            if self.dn is None:
                raise ValueError("Successful auth must have dn")
        else:
            if not self.error_message:
                raise ValueError("Failed auth must have error_message")

    @property
    def success(self) -> bool:
        return self.outcome is AuthenticationOutcome.AUTHENTICATED

    @classmethod
    def success_result(cls, login: str, dn: str) -> AuthResult:
        """Create a successful authentication result."""
        return cls(outcome=AuthenticationOutcome.AUTHENTICATED, login=login, dn=dn)

    @classmethod
    def failure_result(
        cls,
        outcome: AuthenticationOutcome,
        login: str,
        error_message: str,
        dn: Optional[str] = None,
        error_code: Optional[int] = None,
    ) -> AuthResult:
        """Create a failed authentication result."""
        return cls(
            outcome=outcome,
            login=login,
            dn=dn,
            error_code=error_code,
            error_message=error_message,
        )
