"""
simpleldap Configuration

Settings needed to build a CredentialResolver, loadable from the process
environment.

Environment variables (default prefix SIMPLELDAP_):
    HOST             Directory server hostname (required)
    PORT             Directory server port (default 389)
    ROOT_DN          DN of the privileged search account (required)
    ROOT_PASSWORD    Password of the privileged search account (required)
    BASE_DN          Subtree searched for user entries (required)
    CONNECT_TIMEOUT  Seconds to wait for the TCP connection (optional)
    RECEIVE_TIMEOUT  Seconds to wait for each response (optional)
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

import attrs
from attrs import field

from simpleldap.core.exceptions import InvalidArgument
from simpleldap.directory.endpoint import DEFAULT_PORT
from simpleldap.directory.resolver import CredentialResolver

ENV_PREFIX = "SIMPLELDAP_"


@attrs.define(frozen=True)
class DirectoryConfig:
    """
    Directory connection settings.

    Attributes:
        host: Directory server hostname
        root_dn: DN of the privileged search account
        root_password: Password of the privileged search account
        base_dn: Subtree searched for user entries
        port: Directory server port (default 389)
        connect_timeout: Seconds to wait for the TCP connection
        receive_timeout: Seconds to wait for each response
    """

    host: str
    root_dn: str
    root_password: str = field(repr=False)
    base_dn: str
    port: int = DEFAULT_PORT
    connect_timeout: Optional[float] = None
    receive_timeout: Optional[float] = None

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = ENV_PREFIX,
    ) -> DirectoryConfig:
        """
        Read settings from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)
            prefix: Variable name prefix

        Raises:
            InvalidArgument: A required variable is missing or a number
                cannot be parsed
        """
        env = os.environ if environ is None else environ

        def required(name: str) -> str:
            value = env.get(prefix + name, "").strip()
            if not value:
                raise InvalidArgument(f"Missing required setting {prefix + name}")
            return value

        def number(name: str, kind: type) -> Optional[float]:
            raw = env.get(prefix + name, "").strip()
            if not raw:
                return None
            try:
                return kind(raw)
            except ValueError as e:
                raise InvalidArgument(f"Invalid value for {prefix + name}: {raw!r}") from e

        # Not stripped: whitespace is significant in a password
        root_password = env.get(prefix + "ROOT_PASSWORD", "")
        if not root_password:
            raise InvalidArgument(f"Missing required setting {prefix}ROOT_PASSWORD")

        port = number("PORT", int)
        return cls(
            host=required("HOST"),
            root_dn=required("ROOT_DN"),
            root_password=root_password,
            base_dn=required("BASE_DN"),
            port=DEFAULT_PORT if port is None else port,
            connect_timeout=number("CONNECT_TIMEOUT", float),
            receive_timeout=number("RECEIVE_TIMEOUT", float),
        )

    def create_resolver(self, **endpoint_kwargs) -> CredentialResolver:
        """
        Connect to the configured directory.

        Keyword arguments are passed to DirectoryEndpoint and override the
        configured timeouts.

        Raises:
            InvalidArgument: A setting is invalid
            DirectoryConnectionError: The server or root account is unusable
        """
        return CredentialResolver.from_server(
            self.host,
            self.port,
            self.root_dn,
            self.root_password,
            self.base_dn,
            **{
                "connect_timeout": self.connect_timeout,
                "receive_timeout": self.receive_timeout,
                **endpoint_kwargs,
            },
        )
