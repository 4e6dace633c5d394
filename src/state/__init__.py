"""State management module."""
from src.state.config_store import (
    DEFAULT_NAMESPACE, RESERVED_PREFIX, ConfigStore, ConfigStoreError, PermissionDeniedError, is_reserved, redact,
)
from src.state.database import DatabaseManager, DatabaseError, DatabaseNotInitializedError
from src.state.models import ConfigEntry
from src.state.repositories import SettingsRepository
__all__ = ["DatabaseManager", "DatabaseError", "DatabaseNotInitializedError",
           "ConfigStore", "ConfigStoreError", "PermissionDeniedError", "DEFAULT_NAMESPACE", "RESERVED_PREFIX",
           "is_reserved", "redact", "ConfigEntry", "SettingsRepository"]
