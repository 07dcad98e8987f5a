"""
simpleldap Directory Module

Components:
- endpoint: DirectoryEndpoint, one LDAP server and its binds
- resolver: CredentialResolver, login search plus password bind
- filters: injection-safe search filter construction
"""

from simpleldap.directory.endpoint import DirectoryEndpoint
from simpleldap.directory.resolver import CredentialResolver, create_resolver
from simpleldap.directory.filters import escape_filter_value, login_filter

__all__ = [
    "DirectoryEndpoint",
    "CredentialResolver",
    "create_resolver",
    "escape_filter_value",
    "login_filter",
]
