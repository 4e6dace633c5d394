"""Server-side event filter resolution."""
import logging

from src.chat.keys import FILTER_KEY
from src.chat.session import SessionManager

logger = logging.getLogger(__name__)


class FilterResolver:
    """Obtains and caches a sync filter scoped to the resolved room."""

    def __init__(self, sessions: SessionManager) -> None:
        self._sessions = sessions

    async def get_filter(self) -> bool:
        """Create and persist a filter for the current room.

        Assumes a logged-in session. Fails without a network call when no
        room has been resolved yet.
        """
        s = self._sessions.session
        if s.filter_id:
            return True
        if not s.room_id:
            logger.info("cannot create filter before the room is resolved")
            return False
        if not s.user_id:
            logger.info("cannot create filter without a user id")
            return False
        filter_id = await self._sessions.api.create_filter(self._sessions.home_server, s.user_id, s.room_id, s.token)
        if filter_id is None:
            logger.warning("failed to create filter for %s", s.room_id)
            return False
        return await self._sessions.store.set_logged(FILTER_KEY, filter_id)
