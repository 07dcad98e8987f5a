"""
simpleldap Exception Types

Exceptions raised by directory endpoints and credential resolvers.

The taxonomy separates two families of failure:

- DirectoryConnectionError: the credential could not even be checked
  (server unreachable, protocol error, malformed response, rejected
  service account).
- AuthenticationFailedError and its subclasses: the credential was
  checked and rejected.

Callers implementing lockout counters or audit logs must never treat one
family as the other.
"""

from typing import Optional


class SimpleLdapError(Exception):
    """Base exception for all simpleldap errors."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidArgument(SimpleLdapError, ValueError):
    """
    A caller passed a None, empty or out-of-range value.

    Raised synchronously, before any network activity.
    """

    pass


class DirectoryConnectionError(SimpleLdapError):
    """
    The directory could not be consulted.

    Covers socket errors, timeouts, unexpected result codes, malformed
    responses and a rejected bind of the privileged search account.
    This does NOT mean the user's credentials are wrong, only that they
    could not be verified.
    """

    pass


class AuthenticationFailedError(SimpleLdapError):
    """
    Credentials were checked and rejected.

    Abstract: only the subclasses below are raised.
    """

    pass


class UserNotFoundError(AuthenticationFailedError):
    """The login search matched no directory entry."""

    def __init__(self, login: str, message: Optional[str] = None) -> None:
        if message is None:
            message = f"No directory entry found for login {login!r}"
        super().__init__(message)
        self.login = login


class IncorrectPasswordError(AuthenticationFailedError):
    """The user entry exists but the directory rejected the password."""

    def __init__(self, dn: str, code: Optional[int] = None) -> None:
        super().__init__(f"Incorrect password for {dn}", code)
        self.dn = dn


class UnspecifiedAuthenticationError(AuthenticationFailedError):
    """
    A bind was rejected as a credential failure.

    Raised by DirectoryEndpoint, which cannot tell whether the DN or the
    password was wrong. CredentialResolver translates it into a more
    specific error.
    """

    INVALID_CREDENTIALS = 49
    INAPPROPRIATE_AUTHENTICATION = 48

    def __init__(
        self,
        dn: str,
        code: Optional[int] = None,
        message: Optional[str] = None,
    ) -> None:
        if message is None:
            message = f"Directory rejected credentials for {dn}"
        super().__init__(message, code)
        self.dn = dn
