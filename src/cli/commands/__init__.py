"""CLI commands."""

from . import (
    init,
    listen,
    login,
    logout,
    room,
    settings,
    status,
)

__all__ = [
    "init",
    "listen",
    "login",
    "logout",
    "room",
    "settings",
    "status",
]
