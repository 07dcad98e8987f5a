#!/usr/bin/env python3
"""
Login Check Example

Demonstrates how to use simpleldap to check user credentials against a
directory server.

Features:
1. Endpoint creation and the reachability probe
2. Login name to distinguished name resolution
3. Raising and boolean authentication
4. Outcome records for audit logging
5. Filter escaping of hostile logins

Runs against ldap3's in-memory mock server by default. Set the
SIMPLELDAP_* environment variables to use a real server instead.
"""

import os

from ldap3 import MOCK_SYNC

from simpleldap import (
    CredentialResolver,
    DirectoryConfig,
    DirectoryEndpoint,
    IncorrectPasswordError,
    UserNotFoundError,
)
from simpleldap.directory import login_filter


BASE_DN = "dc=example,dc=com"
ROOT_DN = "cn=admin,dc=example,dc=com"
ROOT_PASSWORD = "adminpw"

DEMO_USERS = {
    "jdoe": "secret123",
    "asmith": "correct horse",
}


def demo_resolver() -> CredentialResolver:
    """Build a resolver over an in-memory directory with a few users."""
    endpoint = DirectoryEndpoint("ldap.example.com", 389, client_strategy=MOCK_SYNC)

    conn = endpoint.root_bind()
    try:
        conn.strategy.add_entry(BASE_DN, {"objectClass": ["top", "domain"], "dc": "example"})
        conn.strategy.add_entry(ROOT_DN, {"objectClass": ["top", "person"], "sn": "admin", "userPassword": ROOT_PASSWORD})
        for login, password in DEMO_USERS.items():
            dn = f"cn={login},{BASE_DN}"
            conn.strategy.add_entry(dn, {
                "objectClass": ["top", "person", "user"],
                "sn": login,
                "sAMAccountName": login,
                "distinguishedName": dn,
                "userPassword": password,
            })
    finally:
        conn.unbind()

    return CredentialResolver(endpoint, ROOT_DN, ROOT_PASSWORD, BASE_DN)


def main():
    """Demonstrate credential checks."""

    print("=" * 70)
    print("simpleldap - Login Check")
    print("=" * 70)
    print()

    # ==========================================================================
    # EXAMPLE 1: Connect
    # ==========================================================================
    print("1. Connect to Directory")
    print("-" * 40)

    if os.environ.get("SIMPLELDAP_HOST"):
        resolver = DirectoryConfig.from_env().create_resolver()
        print("   Using server from SIMPLELDAP_* environment")
    else:
        resolver = demo_resolver()
        print("   Using in-memory demo directory")

    print(f"   Resolver: {resolver}")
    print()

    # ==========================================================================
    # EXAMPLE 2: Resolve Login Names
    # ==========================================================================
    print("2. Resolve Login Names")
    print("-" * 40)

    for login in ("jdoe", "nobody"):
        try:
            dn = resolver.find_distinguished_name(login)
            print(f"   {login!r:12} -> {dn}")
        except UserNotFoundError as e:
            print(f"   {login!r:12} -> not found ({e.message})")
    print()

    # ==========================================================================
    # EXAMPLE 3: Authenticate
    # ==========================================================================
    print("3. Authenticate")
    print("-" * 40)

    try:
        dn = resolver.authenticate("jdoe", "secret123")
        print(f"   jdoe authenticated as {dn}")
    except IncorrectPasswordError:
        print("   jdoe rejected")

    try:
        resolver.authenticate("jdoe", "guess")
    except IncorrectPasswordError as e:
        print(f"   Wrong password rejected: {e.message}")

    print(f"   try_authenticate('asmith', 'correct horse'): "
          f"{resolver.try_authenticate('asmith', 'correct horse')}")
    print(f"   try_authenticate('asmith', ''): "
          f"{resolver.try_authenticate('asmith', '')}")
    print()

    # ==========================================================================
    # EXAMPLE 4: Outcome Records
    # ==========================================================================
    print("4. Outcome Records")
    print("-" * 40)

    attempts = [
        ("jdoe", "secret123"),
        ("jdoe", "nope"),
        ("ghost", "whatever"),
    ]
    for login, password in attempts:
        result = resolver.check(login, password)
        print(f"   {login:8} {result.outcome.name:20} {result.dn or result.error_message}")
    print()

    # ==========================================================================
    # EXAMPLE 5: Hostile Logins
    # ==========================================================================
    print("5. Hostile Logins")
    print("-" * 40)

    for login in ("*", "jdoe)(sAMAccountName=*", "a)(b"):
        print(f"   {login!r:28} filter: {login_filter(login)}")
        print(f"   {'':28} accepted: {resolver.try_authenticate(login, 'secret123')}")
    print()

    print("=" * 70)
    print("Done")
    print("=" * 70)


if __name__ == "__main__":
    main()
