"""Room alias resolution."""
import logging
from typing import Optional

from src.chat.keys import ROOM_DERIVED_KEYS, ROOM_DOMAIN_KEY, ROOM_ID_KEY, ROOM_NAME_KEY
from src.chat.prompt import FormField, FormPrompt
from src.chat.session import SessionManager
from src.state import ConfigStoreError

logger = logging.getLogger(__name__)


def room_alias(name: str, domain: str) -> str:
    return f"#{name}:{domain}"


class RoomResolver:
    """Turns the configured room name and domain into a server room id."""

    def __init__(self, sessions: SessionManager) -> None:
        self._sessions = sessions

    async def get_room_id(self) -> bool:
        """Resolve and persist the room id. Assumes a logged-in session.

        Returns True immediately when a room id is cached. Returns False
        without any network call when the room name or domain is unset.
        """
        s = self._sessions.session
        if s.room_id:
            return True
        if not s.room_name or not s.room_domain:
            logger.info("room name or domain not set")
            return False
        alias = room_alias(s.room_name, s.room_domain)
        room_id = await self._sessions.api.get_room_id(self._sessions.home_server, alias, s.token)
        if room_id is None:
            logger.warning("failed to return room_id for %s", alias)
            return False
        return await self._sessions.store.set_logged(ROOM_ID_KEY, room_id)

    async def set_room(self, name: str, domain: str) -> bool:
        """Store a new room and clear the room id, cursor and filter in one transaction."""
        name, domain = name.strip(), domain.strip()
        if not name or not domain:
            raise ValueError("Room name and domain cannot be empty")
        changes: dict[str, Optional[str]] = {key: None for key in ROOM_DERIVED_KEYS}
        changes[ROOM_NAME_KEY] = name
        changes[ROOM_DOMAIN_KEY] = domain
        try:
            await self._sessions.store.update(changes)
        except ConfigStoreError as e:
            logger.warning("failed to save room: %s", e)
            return False
        logger.info("# %s set '%s' => clearing %s", ROOM_NAME_KEY, name, ", ".join(ROOM_DERIVED_KEYS))
        return True

    async def edit_room(self, prompt: FormPrompt) -> bool:
        """Ask for the room name and domain, then behave like :meth:`set_room`.

        Returns:
            False if the user cancelled, left a value empty, or saving failed.
        """
        store = self._sessions.store
        answers = prompt.ask("Matrix room", [
            FormField(ROOM_NAME_KEY, "Room name", await store.get(ROOM_NAME_KEY)),
            FormField(ROOM_DOMAIN_KEY, "Domain", await store.get(ROOM_DOMAIN_KEY)),
        ])
        if answers is None:
            logger.info("room edit cancelled")
            return False
        s = self._sessions.session
        name = (answers.get(ROOM_NAME_KEY) or s.room_name).strip()
        domain = (answers.get(ROOM_DOMAIN_KEY) or s.room_domain).strip()
        if not name or not domain:
            logger.info("room name and domain are both required")
            return False
        return await self.set_room(name, domain)
