"""
Pytest configuration and shared fixtures for simpleldap tests.

Two ways of standing in for a directory server:
- mock_endpoint: ldap3's MOCK_SYNC strategy with an in-memory DIT
- fake_directory: a scripted replacement for ldap3.Connection, used to
  inject transport failures and to check that connections are released
"""

from typing import Any, Dict, List, Optional

import pytest
from ldap3 import MOCK_SYNC

from simpleldap.directory.endpoint import DirectoryEndpoint
from simpleldap.directory.resolver import CredentialResolver


# =============================================================================
# DIRECTORY CONTENTS
# =============================================================================

HOST = "ldap.example.com"
PORT = 389
BASE_DN = "dc=example,dc=com"
ROOT_DN = "cn=admin,dc=example,dc=com"
ROOT_PASSWORD = "adminpw"
USER_LOGIN = "jdoe"
USER_DN = "cn=jdoe,dc=example,dc=com"
USER_PASSWORD = "secret123"

DIRECTORY_ENTRIES: Dict[str, Dict[str, Any]] = {
    BASE_DN: {
        "objectClass": ["top", "domain"],
        "dc": "example",
    },
    ROOT_DN: {
        "objectClass": ["top", "person"],
        "sn": "admin",
        "userPassword": ROOT_PASSWORD,
    },
    USER_DN: {
        "objectClass": ["top", "person", "user"],
        "sn": "Doe",
        "sAMAccountName": USER_LOGIN,
        "distinguishedName": USER_DN,
        "userPassword": USER_PASSWORD,
    },
}


# =============================================================================
# MOCK_SYNC FIXTURES
# =============================================================================


def populate(endpoint: DirectoryEndpoint, entries: Dict[str, Dict[str, Any]]) -> None:
    """Add entries to the in-memory DIT behind a MOCK_SYNC endpoint."""
    conn = endpoint.root_bind()
    try:
        for dn, attributes in entries.items():
            # add_entry rewrites the attribute dict in place
            conn.strategy.add_entry(dn, {k: v for k, v in attributes.items()})
    finally:
        conn.unbind()


@pytest.fixture
def mock_endpoint() -> DirectoryEndpoint:
    """Endpoint backed by ldap3's in-memory mock server."""
    endpoint = DirectoryEndpoint(HOST, PORT, client_strategy=MOCK_SYNC)
    populate(endpoint, DIRECTORY_ENTRIES)
    return endpoint


@pytest.fixture
def mock_resolver(mock_endpoint: DirectoryEndpoint) -> CredentialResolver:
    """Resolver using the example.com root account."""
    return CredentialResolver(mock_endpoint, ROOT_DN, ROOT_PASSWORD, BASE_DN)


# =============================================================================
# SCRIPTED FAKE
# =============================================================================

_DESCRIPTIONS = {
    0: "success",
    32: "noSuchObject",
    48: "inappropriateAuthentication",
    49: "invalidCredentials",
    51: "busy",
    52: "unavailable",
    53: "unwillingToPerform",
}


class FakeConnection:
    """Replacement for ldap3.Connection answering from a FakeDirectory."""

    def __init__(self, directory: "FakeDirectory", user: Optional[str], password: Optional[str]):
        self.directory = directory
        self.user = user
        self.password = password
        self.bound = False
        self.result: Optional[Dict[str, Any]] = None
        self.response: Optional[List[Dict[str, Any]]] = None
        self.unbind_calls = 0

    def _set_result(self, code: int) -> None:
        self.result = {"result": code, "description": _DESCRIPTIONS.get(code, "other"), "message": ""}

    def bind(self) -> bool:
        d = self.directory
        d.bind_attempts.append(self.user)
        if d.bind_error is not None:
            raise d.bind_error
        if self.user is None:
            code = 0 if d.allow_anonymous else 53
        elif self.user in d.bind_result_codes:
            code = d.bind_result_codes[self.user]
        elif d.accounts.get(self.user) == self.password:
            code = 0
        else:
            code = 49
        self._set_result(code)
        self.bound = code == 0
        return self.bound

    def search(self, search_base, search_filter, search_scope=None, attributes=None) -> bool:
        d = self.directory
        d.searches.append({
            "base": search_base,
            "filter": search_filter,
            "scope": search_scope,
            "attributes": attributes,
        })
        if d.search_error is not None:
            raise d.search_error
        self._set_result(d.search_result_code)
        self.response = [] if d.search_result_code else list(d.search_entries)
        return bool(self.response)

    def unbind(self) -> bool:
        self.unbind_calls += 1
        self.bound = False
        return True


class FakeDirectory:
    """Scripted directory server state shared by FakeConnections."""

    def __init__(self) -> None:
        self.accounts: Dict[str, str] = {ROOT_DN: ROOT_PASSWORD, USER_DN: USER_PASSWORD}
        self.allow_anonymous = True
        self.bind_error: Optional[Exception] = None
        self.bind_result_codes: Dict[str, int] = {}
        self.search_error: Optional[Exception] = None
        self.search_result_code = 0
        self.search_entries: List[Dict[str, Any]] = [entry_response(USER_DN)]
        self.connections: List[FakeConnection] = []
        self.bind_attempts: List[Optional[str]] = []
        self.searches: List[Dict[str, Any]] = []

    def connection(self, server, user=None, password=None, **kwargs) -> FakeConnection:
        conn = FakeConnection(self, user, password)
        self.connections.append(conn)
        return conn

    @property
    def leaked(self) -> List[FakeConnection]:
        """Connections never unbound."""
        return [c for c in self.connections if c.unbind_calls == 0]


def entry_response(dn: str, with_dn_attribute: bool = True) -> Dict[str, Any]:
    """A search result entry as ldap3 puts it in Connection.response."""
    attributes = {"distinguishedName": [dn]} if with_dn_attribute else {}
    return {"type": "searchResEntry", "dn": dn, "attributes": attributes}


@pytest.fixture
def fake_directory(monkeypatch) -> FakeDirectory:
    """Route every ldap3 Connection made by simpleldap to a FakeDirectory."""
    directory = FakeDirectory()
    monkeypatch.setattr("simpleldap.directory.endpoint.Connection", directory.connection)
    return directory


@pytest.fixture
def fake_endpoint(fake_directory: FakeDirectory) -> DirectoryEndpoint:
    return DirectoryEndpoint(HOST, PORT)


@pytest.fixture
def fake_resolver(fake_endpoint: DirectoryEndpoint) -> CredentialResolver:
    return CredentialResolver(fake_endpoint, ROOT_DN, ROOT_PASSWORD, BASE_DN)


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests requiring a real directory server"
    )
