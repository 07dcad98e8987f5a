"""
simpleldap Directory Endpoint

One LDAP server, addressed by host and port, able to open anonymous and
simple-authenticated binds.

Every bind is a fresh, one-shot connection: there is no persistent
"connected" state between calls. Bind failures are classified:

- the server answered with a credential rejection (result codes 48/49):
  UnspecifiedAuthenticationError
- anything else (socket error, timeout, other result code, garbage):
  DirectoryConnectionError

Transport:
- ldap3 with simple authentication, no TLS
- ldap3 MOCK_SYNC strategy for in-memory testing
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional, Tuple

import attrs
import structlog
from attrs import field
from ldap3 import ANONYMOUS, MOCK_SYNC, NONE, SIMPLE, SYNC, Connection, Server
from ldap3.core.exceptions import LDAPException
from returns.result import Failure, Result, Success

from simpleldap.core.exceptions import (
    AuthenticationFailedError,
    DirectoryConnectionError,
    InvalidArgument,
    UnspecifiedAuthenticationError,
)

logger = structlog.get_logger()

DEFAULT_PORT = 389

SUPPORTED_STRATEGIES = (SYNC, MOCK_SYNC)

# Result codes the server uses to say "these credentials are wrong".
CREDENTIAL_REJECTIONS = frozenset({
    UnspecifiedAuthenticationError.INAPPROPRIATE_AUTHENTICATION,
    UnspecifiedAuthenticationError.INVALID_CREDENTIALS,
})


# =============================================================================
# VALIDATORS
# =============================================================================


def _validate_host(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument("The hostname must be a non-empty string.")


def _validate_port(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 65535:
        raise InvalidArgument(f"Illegal port number: {value!r}")


def _validate_timeout(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise InvalidArgument(f"{attribute.name} must be a positive number, got {value!r}")


def _validate_strategy(instance: Any, attribute: attrs.Attribute, value: Any) -> None:
    if value not in SUPPORTED_STRATEGIES:
        raise InvalidArgument(f"Unsupported client strategy: {value!r}")


def require_text(name: str, value: Any, allow_empty: bool = False) -> str:
    """Raise InvalidArgument unless value is a (non-empty) string."""
    if not isinstance(value, str):
        raise InvalidArgument(f"The {name} must be a string, got {type(value).__name__}.")
    if not allow_empty and not value:
        raise InvalidArgument(f"The {name} must not be empty.")
    return value


def release_connection(conn: Connection) -> None:
    """Unbind a connection, tolerating a transport that is already gone."""
    try:
        conn.unbind()
    except LDAPException as e:
        logger.debug("connection_release_failed", error=str(e))


# =============================================================================
# DIRECTORY ENDPOINT
# =============================================================================


@attrs.define(frozen=True, slots=True)
class DirectoryEndpoint:
    """
    A single LDAP server.

    Instances are immutable and compare equal by (host, port). Construction
    probes the server with an anonymous bind, so an endpoint that exists
    was reachable when it was built. Nothing is guaranteed afterwards:
    every operation opens a new connection.

    Attributes:
        host: Server hostname or address
        port: TCP port (1-65535)
        connect_timeout: Seconds to wait for the TCP connection
        receive_timeout: Seconds to wait for each response
        client_strategy: ldap3 client strategy (SYNC or MOCK_SYNC)

    Example:
        endpoint = DirectoryEndpoint("ldap.example.com", 389)
        with endpoint.session("cn=jdoe,dc=example,dc=com", "secret123") as conn:
            conn.search(...)
    """

    host: str = field(validator=_validate_host)
    port: int = field(default=DEFAULT_PORT, validator=_validate_port)
    connect_timeout: Optional[float] = field(
        default=None, validator=_validate_timeout, eq=False
    )
    receive_timeout: Optional[float] = field(
        default=None, validator=_validate_timeout, eq=False
    )
    client_strategy: str = field(default=SYNC, validator=_validate_strategy, eq=False)

    _server: Server = field(init=False, default=None, eq=False, repr=False)
    _logger: Any = field(init=False, default=None, eq=False, repr=False)

    def __attrs_post_init__(self) -> None:
        # ldap3's Server checks `port in range(0, 65535)` and so rejects 65535
        port = DEFAULT_PORT if self.port == 65535 else self.port
        try:
            server = Server(
                self.host,
                port=port,
                use_ssl=False,
                get_info=NONE,
                connect_timeout=self.connect_timeout,
            )
        except LDAPException as e:
            raise InvalidArgument(f"Invalid server address {self.host!r}: {e}") from e
        if server.port != self.port:
            server.port = self.port
            server.name = self.url
        object.__setattr__(self, "_server", server)
        object.__setattr__(self, "_logger", structlog.get_logger().bind(endpoint=self.url))

        # Connectivity probe
        release_connection(self.root_bind())
        self._logger.debug("endpoint_ready")

    @classmethod
    def connect(
        cls,
        host: str,
        port: int = DEFAULT_PORT,
        **kwargs: Any,
    ) -> Result[DirectoryEndpoint, DirectoryConnectionError]:
        """
        Build an endpoint without raising on an unreachable server.

        Returns:
            Success(endpoint) or Failure(DirectoryConnectionError)

        Raises:
            InvalidArgument: host or port is invalid
        """
        try:
            return Success(cls(host, port, **kwargs))
        except DirectoryConnectionError as e:
            return Failure(e)

    @property
    def url(self) -> str:
        """URL used to connect to the server."""
        return f"ldap://{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.url

    # -------------------------------------------------------------------------
    # Binds
    # -------------------------------------------------------------------------

    def root_bind(self) -> Connection:
        """
        Open an anonymous connection.

        Used to verify that the server can be reached. The caller owns the
        returned connection and must unbind it.

        Raises:
            DirectoryConnectionError: any failure, including a refused
                anonymous bind
        """
        conn, bound, code, description = self._attempt(None, None)
        if not bound:
            raise DirectoryConnectionError(
                f"Anonymous bind to {self.url} failed: {description}", code
            )
        return conn

    def bind(self, dn: str, password: str) -> Connection:
        """
        Open a connection authenticated with a simple bind.

        Args:
            dn: Distinguished name to bind as
            password: Password, sent as-is

        Returns:
            A bound ldap3 Connection; the caller must unbind it

        Raises:
            InvalidArgument: dn is empty or an argument is not a string
            UnspecifiedAuthenticationError: the server rejected the credentials
            DirectoryConnectionError: the server could not be consulted
        """
        require_text("distinguished name", dn)
        require_text("password", password, allow_empty=True)

        # A simple bind with a DN and no password is an "unauthenticated
        # bind" (RFC 4513 5.1.2) that many servers accept as anonymous.
        if not password:
            self._logger.info("bind_rejected", dn=dn, reason="empty_password")
            raise UnspecifiedAuthenticationError(
                dn, message=f"Empty password refused for {dn}"
            )

        conn, bound, code, description = self._attempt(dn, password)
        if bound:
            self._logger.debug("bind_succeeded", dn=dn)
            return conn

        if code in CREDENTIAL_REJECTIONS:
            self._logger.info("bind_rejected", dn=dn, code=code)
            raise UnspecifiedAuthenticationError(dn, code)

        raise DirectoryConnectionError(
            f"Bind to {self.url} as {dn} failed: {description}", code
        )

    @contextmanager
    def session(self, dn: str, password: str) -> Iterator[Connection]:
        """Bind as dn for the duration of a with-block."""
        conn = self.bind(dn, password)
        try:
            yield conn
        finally:
            release_connection(conn)

    def authenticate(self, dn: str, password: str) -> None:
        """
        Assert that dn can bind with password.

        Raises:
            UnspecifiedAuthenticationError: the server rejected the credentials
            DirectoryConnectionError: the credentials could not be verified
        """
        release_connection(self.bind(dn, password))

    def try_authenticate(self, dn: str, password: str) -> bool:
        """
        Check whether dn can bind with password.

        Returns:
            True on success, False if the credentials were rejected

        Raises:
            DirectoryConnectionError: the credentials could not be verified
        """
        try:
            self.authenticate(dn, password)
        except AuthenticationFailedError:
            return False
        return True

    def _attempt(
        self,
        user: Optional[str],
        password: Optional[str],
    ) -> Tuple[Connection, bool, Optional[int], str]:
        """
        Open a connection and send one bind request.

        Returns the connection (released already unless bound), whether
        the bind succeeded, and the result code and description reported
        by the server.
        """
        conn = Connection(
            self._server,
            user=user,
            password=password,
            authentication=SIMPLE if user else ANONYMOUS,
            client_strategy=self.client_strategy,
            raise_exceptions=False,
            receive_timeout=self.receive_timeout,
        )
        try:
            bound = conn.bind()
        except (LDAPException, OSError) as e:
            release_connection(conn)
            self._logger.warning("bind_error", dn=user, error=str(e))
            raise DirectoryConnectionError(f"Could not connect to {self.url}: {e}") from e

        if bound:
            return conn, True, None, ""

        result = conn.result if isinstance(conn.result, dict) else {}
        code = result.get("result")
        description = result.get("description") or "no response"
        if result.get("message"):
            description = f"{description} ({result['message']})"
        release_connection(conn)
        self._logger.debug("bind_failed", dn=user, code=code, description=description)
        return conn, False, code, description
