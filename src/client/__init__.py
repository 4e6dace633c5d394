"""Matrix client-server API access for the sync engine."""

from .exceptions import MatrixError, RateLimitError, TransportError
from .matrix import MatrixApi, api_url, room_filter_body
from .transport import Transport
from .types import CLIENT_API_PREFIX, DEFAULT_DOMAIN, DEFAULT_SCHEME, LONG_POLL_TIMEOUT_MS, ChatMessage, EventType, LoginType

__all__ = [
    "MatrixApi", "Transport", "api_url", "room_filter_body",
    "ChatMessage", "EventType", "LoginType",
    "CLIENT_API_PREFIX", "DEFAULT_DOMAIN", "DEFAULT_SCHEME", "LONG_POLL_TIMEOUT_MS",
    "MatrixError", "TransportError", "RateLimitError",
]
