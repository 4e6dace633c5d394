"""Session and incremental-sync engine."""
from src.chat.client import ChatClient
from src.chat.filters import FilterResolver
from src.chat.prompt import MASK, FormField, FormPrompt
from src.chat.rooms import RoomResolver, room_alias
from src.chat.session import Session, SessionManager, SessionState, canonical_user_id
from src.chat.sync import SyncLoop, SyncRequest, SyncResult

__all__ = [
    "ChatClient",
    "Session",
    "SessionManager",
    "SessionState",
    "canonical_user_id",
    "RoomResolver",
    "room_alias",
    "FilterResolver",
    "SyncLoop",
    "SyncRequest",
    "SyncResult",
    "FormField",
    "FormPrompt",
    "MASK",
]
