"""Type definitions and constants for the Matrix client library."""

from dataclasses import dataclass
from enum import Enum

CLIENT_API_PREFIX = "/_matrix/client/v3"
DEFAULT_DOMAIN = "matrix.org"
DEFAULT_SCHEME = "https"
LONG_POLL_TIMEOUT_MS = 60000


class LoginType(str, Enum):
    PASSWORD = "m.login.password"
    TOKEN = "m.login.token"
    SSO = "m.login.sso"


class EventType(str, Enum):
    MESSAGE = "m.room.message"


@dataclass(frozen=True)
class ChatMessage:
    """A text message taken from a room timeline."""
    event_id: str
    sender: str
    body: str
    timestamp_ms: int = 0
    msgtype: str = "m.text"
