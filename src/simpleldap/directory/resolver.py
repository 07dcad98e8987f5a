"""
simpleldap Credential Resolver

Login-name authentication against a directory in two phases:

1. Bind as a privileged (root) account and search the subtree under
   base_dn for the entry whose sAMAccountName equals the login.
2. Bind as the resolved DN with the supplied password.

Error classification:
- Root bind fails for any reason  -> DirectoryConnectionError
- Search fails or is malformed    -> DirectoryConnectionError
- Search finds no entry           -> UserNotFoundError
- User bind rejected              -> IncorrectPasswordError
- User bind cannot be attempted   -> DirectoryConnectionError

A rejected root account is a misconfiguration, not a user error, so it
is reported at connection level.
"""

from __future__ import annotations

from typing import Any, Optional

import attrs
import structlog
from attrs import field
from ldap3 import SUBTREE, Connection
from ldap3.core.exceptions import LDAPException

from simpleldap.core.exceptions import (
    DirectoryConnectionError,
    IncorrectPasswordError,
    InvalidArgument,
    UnspecifiedAuthenticationError,
    UserNotFoundError,
)
from simpleldap.core.types import AuthenticationOutcome, AuthResult
from simpleldap.directory.endpoint import (
    DEFAULT_PORT,
    DirectoryEndpoint,
    release_connection,
    require_text,
)
from simpleldap.directory.filters import DN_ATTRIBUTE, login_filter

logger = structlog.get_logger()


def _validate_endpoint(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    if not isinstance(value, DirectoryEndpoint):
        raise InvalidArgument("The endpoint must be a DirectoryEndpoint.")


def _validate_text(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    require_text(attribute.name.lstrip("_").replace("_", " "), value)


@attrs.define(frozen=True, slots=True, repr=False)
class CredentialResolver:
    """
    Authenticates users by login name.

    Instances are immutable and safe to share between threads. The root
    bind is verified at construction; after that every call opens its
    own connections and releases them before returning.

    Attributes:
        endpoint: Directory server to use
        root_dn: DN of the privileged account used for searches
        root_password: Password of the privileged account (never shown)
        base_dn: Subtree searched for user entries

    Example:
        resolver = CredentialResolver(
            DirectoryEndpoint("ldap.example.com", 389),
            root_dn="cn=admin,dc=example,dc=com",
            root_password="adminpw",
            base_dn="dc=example,dc=com",
        )
        if resolver.try_authenticate("jdoe", "secret123"):
            ...
    """

    endpoint: DirectoryEndpoint = field(validator=_validate_endpoint)
    root_dn: str = field(validator=_validate_text)
    root_password: str = field(validator=_validate_text)
    base_dn: str = field(validator=_validate_text)

    _logger: Any = field(init=False, default=None, eq=False)

    def __attrs_post_init__(self) -> None:
        object.__setattr__(
            self,
            "_logger",
            structlog.get_logger().bind(endpoint=self.endpoint.url, base_dn=self.base_dn),
        )
        release_connection(self._privileged_bind())
        self._logger.debug("resolver_ready", root_dn=self.root_dn)

    @classmethod
    def from_server(
        cls,
        host: str,
        port: int,
        root_dn: str,
        root_password: str,
        base_dn: str,
        **endpoint_kwargs: Any,
    ) -> CredentialResolver:
        """
        Create a resolver for the server at host:port.

        Raises:
            InvalidArgument: Any argument is missing or out of range
            DirectoryConnectionError: The server or root account is unusable
        """
        endpoint = DirectoryEndpoint(host, port, **endpoint_kwargs)
        return cls(endpoint, root_dn, root_password, base_dn)

    def __repr__(self) -> str:
        return (
            f"CredentialResolver(endpoint={self.endpoint.url}, root_dn={self.root_dn!r}, "
            f"root_password=[not shown], base_dn={self.base_dn!r})"
        )

    __str__ = __repr__

    # -------------------------------------------------------------------------
    # Search phase
    # -------------------------------------------------------------------------

    def find_distinguished_name(self, login: str) -> str:
        """
        Find the DN of the entry whose login is `login`.

        The first entry in server order wins if several match.

        Raises:
            InvalidArgument: login is not a string
            UserNotFoundError: No entry matched
            DirectoryConnectionError: The root bind or the search failed
        """
        require_text("login", login, allow_empty=True)
        if not login:
            self._logger.info("user_not_found", login=login, reason="empty_login")
            raise UserNotFoundError(login)
        search_filter = login_filter(login)

        conn = self._privileged_bind()
        try:
            entry = self._search_first(conn, search_filter)
        finally:
            release_connection(conn)

        if entry is None:
            self._logger.info("user_not_found", login=login)
            raise UserNotFoundError(login)

        dn = _first_value(entry.get("attributes") or {}, DN_ATTRIBUTE)
        if not dn:
            self._logger.warning(
                "search_entry_missing_dn", login=login, entry=entry.get("dn")
            )
            raise DirectoryConnectionError(
                f"Entry {entry.get('dn')!r} has no {DN_ATTRIBUTE} attribute"
            )

        self._logger.debug("user_resolved", login=login, dn=dn)
        return dn

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    def authenticate(self, login: str, password: str) -> str:
        """
        Assert that `login` can authenticate with `password`.

        Returns:
            The resolved distinguished name

        Raises:
            InvalidArgument: login or password is not a string
            UserNotFoundError: The login is unknown
            IncorrectPasswordError: The login exists, the password is wrong
            DirectoryConnectionError: The credentials could not be verified
        """
        require_text("password", password, allow_empty=True)
        dn = self.find_distinguished_name(login)

        try:
            self.endpoint.authenticate(dn, password)
        except UnspecifiedAuthenticationError as e:
            self._logger.info("incorrect_password", login=login, dn=dn)
            raise IncorrectPasswordError(dn, e.code) from e

        self._logger.info("user_authenticated", login=login, dn=dn)
        return dn

    def try_authenticate(self, login: str, password: str) -> bool:
        """
        Check whether `login` can authenticate with `password`.

        Returns:
            True on success; False if the user is unknown or the password
            is wrong

        Raises:
            DirectoryConnectionError: The credentials could not be verified
        """
        try:
            self.authenticate(login, password)
        except (UserNotFoundError, IncorrectPasswordError):
            return False
        return True

    def check(self, login: str, password: str) -> AuthResult:
        """
        Authenticate and report the outcome as a value.

        Connection failures are reported as CONNECTION_FAILED instead of
        being raised. InvalidArgument still raises.
        """
        try:
            dn = self.authenticate(login, password)
        except UserNotFoundError as e:
            return AuthResult.failure_result(
                AuthenticationOutcome.USER_NOT_FOUND, login, e.message
            )
        except IncorrectPasswordError as e:
            return AuthResult.failure_result(
                AuthenticationOutcome.WRONG_PASSWORD,
                login,
                e.message,
                dn=e.dn,
                error_code=e.code,
            )
        except DirectoryConnectionError as e:
            self._logger.error("authentication_unverifiable", login=login, error=e.message)
            return AuthResult.failure_result(
                AuthenticationOutcome.CONNECTION_FAILED,
                login,
                e.message,
                error_code=e.code,
            )
        return AuthResult.success_result(login, dn)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _privileged_bind(self) -> Connection:
        try:
            return self.endpoint.bind(self.root_dn, self.root_password)
        except UnspecifiedAuthenticationError as e:
            self._logger.error("root_bind_rejected", root_dn=self.root_dn, code=e.code)
            raise DirectoryConnectionError(
                f"Directory rejected the root account {self.root_dn}", e.code
            ) from e

    def _search_first(self, conn: Connection, search_filter: str) -> Optional[dict]:
        """Run the login search and return the first entry, if any."""
        try:
            conn.search(
                search_base=self.base_dn,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=[DN_ATTRIBUTE],
            )
        except (LDAPException, OSError) as e:
            self._logger.warning("search_error", error=str(e))
            raise DirectoryConnectionError(f"Search under {self.base_dn} failed: {e}") from e

        result = conn.result if isinstance(conn.result, dict) else {}
        code = result.get("result")
        if code != 0:
            description = result.get("description") or "no response"
            self._logger.warning("search_failed", code=code, description=description)
            raise DirectoryConnectionError(
                f"Search under {self.base_dn} failed: {description}", code
            )

        for entry in conn.response or []:
            # Skip referrals and intermediate responses
            if entry.get("type") == "searchResEntry":
                return entry
        return None


def _first_value(attributes: Any, name: str) -> Optional[str]:
    value = attributes.get(name)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return str(value) if value else None


def create_resolver(
    host: str,
    root_dn: str,
    root_password: str,
    base_dn: str,
    port: int = DEFAULT_PORT,
    **endpoint_kwargs: Any,
) -> CredentialResolver:
    """
    Create a credential resolver.

    Args:
        host: Directory server hostname
        root_dn: DN of the privileged search account
        root_password: Password of the privileged search account
        base_dn: Subtree searched for user entries
        port: Directory server port (default 389)

    Example:
        resolver = create_resolver(
            "ldap.example.com",
            root_dn="cn=admin,dc=example,dc=com",
            root_password="adminpw",
            base_dn="dc=example,dc=com",
        )
        resolver.authenticate("jdoe", "secret123")
    """
    return CredentialResolver.from_server(
        host, port, root_dn, root_password, base_dn, **endpoint_kwargs
    )
