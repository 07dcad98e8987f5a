"""
Search filter construction.

Caller-supplied login names are embedded in an LDAP search filter
(RFC 4515). Every character with a meaning in filter syntax is replaced
by its backslash-hex escape before embedding, otherwise a login such as
``*)(objectClass=*`` would widen the search.
"""

from __future__ import annotations

LOGIN_ATTRIBUTE = "sAMAccountName"
DN_ATTRIBUTE = "distinguishedName"

# Single pass: backslashes introduced here are never escaped again.
_FILTER_ESCAPES = str.maketrans({
    "(": "\\28",
    ")": "\\29",
    "*": "\\2a",
    "\\": "\\5c",
    "\x00": "\\00",
})


def escape_filter_value(value: str) -> str:
    """
    Escape a value for use as an assertion value in a search filter.

    Examples:
        "jdoe" -> "jdoe"
        "a)(b" -> "a\\29\\28b"
        "a\\29" -> "a\\5c29"
    """
    return value.translate(_FILTER_ESCAPES)


def login_filter(login: str) -> str:
    """Build the filter matching an account by its login name."""
    return f"(&({LOGIN_ATTRIBUTE}={escape_filter_value(login)}))"
