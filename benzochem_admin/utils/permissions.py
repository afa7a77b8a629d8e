"""
API key permission scopes

Scopes are "<resource>:<action>" strings. A key may also hold "*" (every
scope) or "<resource>:*" (every action on one resource). The dotted form
"<resource>.<action>" is accepted as an alias of the colon form.
"""

import re
from typing import Iterable, List

WILDCARD = "*"

PERMISSION_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*[:.]([a-z][a-z0-9_-]*|\*)$")

KNOWN_PERMISSIONS = (
    "products:read",
    "products:write",
    "products:delete",
    "collections:read",
    "collections:write",
    "collections:delete",
    "quotations:read",
    "quotations:write",
    "users:read",
    "users:write",
    "analytics:read",
    "webhooks:read",
    "webhooks:write",
    "notifications:register",
    "notifications:send",
)

_ACTION_PHRASES = {
    "read": "view {resource}",
    "write": "create or modify {resource}",
    "delete": "delete {resource}",
}


def is_valid_permission(permission: str) -> bool:
    return permission == WILDCARD or bool(PERMISSION_PATTERN.match(permission))


def normalize_permissions(permissions: Iterable[str]) -> List[str]:
    """
    Strip, validate, canonicalize and deduplicate permission strings

    Dotted scopes are stored in colon form. First occurrence wins, so the
    result keeps the caller's order.

    Raises:
        ValueError: If a permission is malformed
    """
    normalized = []
    for permission in permissions:
        permission = permission.strip()
        if not is_valid_permission(permission):
            raise ValueError(
                f"Invalid permission: '{permission}'. "
                "Expected '<resource>:<action>', '<resource>:*' or '*'"
            )
        normalized.append(permission.replace(".", ":"))

    return list(dict.fromkeys(normalized))


def has_permission(granted: Iterable[str], required: str) -> bool:
    """Check whether a granted scope set covers the required scope"""
    granted = set(granted)

    if WILDCARD in granted or required in granted:
        return True

    colon_form = required.replace(".", ":")
    dotted_form = required.replace(":", ".")
    if colon_form in granted or dotted_form in granted:
        return True

    resource = colon_form.split(":", 1)[0]
    return f"{resource}:*" in granted or f"{resource}.*" in granted


def permission_denied_message(required: str) -> str:
    """Human readable denial for a missing scope"""
    resource, _, action = required.replace(".", ":").partition(":")
    phrase = _ACTION_PHRASES.get(action)

    if phrase:
        what = phrase.format(resource=resource)
        return (
            f"Access denied: Your API key lacks permission to {what}. "
            f"Required permission: '{required}'"
        )

    return f"Insufficient permissions. Required permission: '{required}'"
