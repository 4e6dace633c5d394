"""CLI utilities."""

from .config import ClientConfig, ConfigError, ConfigManager
from .validation import validate_domain, validate_key, validate_room_name, validate_user_name

__all__ = [
    "ConfigManager",
    "ClientConfig",
    "ConfigError",
    "validate_domain",
    "validate_key",
    "validate_room_name",
    "validate_user_name",
]
