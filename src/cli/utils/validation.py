"""Input validation utilities for CLI commands."""

import re

_LOCALPART = re.compile(r"^[a-z0-9._=/+-]+$")
_DOMAIN = re.compile(r"^[A-Za-z0-9.-]+(:\d{1,5})?$")


def validate_user_name(user_name: str) -> str:
    """Validate and return a Matrix user localpart. Raises ValueError if invalid."""
    if not user_name or not user_name.strip():
        raise ValueError("User name cannot be empty")
    user_name = user_name.strip()
    if len(user_name) > 255:
        raise ValueError("User name cannot exceed 255 characters")
    if not _LOCALPART.match(user_name):
        raise ValueError(
            "User name can only contain lowercase letters, numbers, and . _ = - / +"
        )
    return user_name


def validate_domain(domain: str) -> str:
    """Validate and return a server domain (optionally with port). Raises ValueError if invalid."""
    if not domain or not domain.strip():
        raise ValueError("Domain cannot be empty")
    domain = domain.strip()
    if "://" in domain:
        raise ValueError("Domain must not include a scheme (use example.org, not https://example.org)")
    if len(domain) > 255:
        raise ValueError("Domain cannot exceed 255 characters")
    if not _DOMAIN.match(domain):
        raise ValueError("Domain can only contain letters, numbers, dots, hyphens, and an optional :port")
    return domain


def validate_room_name(name: str) -> str:
    """Validate and return a room alias localpart. Raises ValueError if invalid."""
    if not name or not name.strip():
        raise ValueError("Room name cannot be empty")
    name = name.strip().lstrip("#")
    if not name:
        raise ValueError("Room name cannot be empty")
    if ":" in name or any(c.isspace() for c in name):
        raise ValueError("Room name cannot contain ':' or whitespace")
    return name


def validate_key(key: str) -> str:
    """Validate and return a store key name. Raises ValueError if invalid."""
    if not key or not key.strip():
        raise ValueError("Key cannot be empty")
    key = key.strip()
    if len(key) > 128:
        raise ValueError("Key cannot exceed 128 characters")
    return key
