"""
simpleldap - Login-name authentication against an LDAP directory

Authenticates a login and password in two phases: a privileged account
searches for the login's distinguished name, then the resolved DN binds
with the supplied password.

Failures are split into two families that callers must keep apart:
- DirectoryConnectionError: the credentials could not be checked
- AuthenticationFailedError (UserNotFoundError, IncorrectPasswordError):
  the credentials were checked and rejected

Example Usage:
    from simpleldap import CredentialResolver, DirectoryEndpoint

    endpoint = DirectoryEndpoint("ldap.example.com", 389)
    resolver = CredentialResolver(
        endpoint,
        root_dn="cn=admin,dc=example,dc=com",
        root_password="adminpw",
        base_dn="dc=example,dc=com",
    )

    if resolver.try_authenticate("jdoe", "secret123"):
        print("Welcome!")
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
from simpleldap.directory.endpoint import DirectoryEndpoint
from simpleldap.directory.resolver import CredentialResolver, create_resolver
from simpleldap.config import DirectoryConfig

__version__ = "0.1.0"

__all__ = [
    # Main API
    "DirectoryEndpoint",
    "CredentialResolver",
    "create_resolver",
    "DirectoryConfig",
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
    # Metadata
    "__version__",
]
