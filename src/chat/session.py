"""Login state and credential management."""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.client import DEFAULT_DOMAIN, DEFAULT_SCHEME, LoginType, MatrixApi
from src.chat.keys import (
    FILTER_KEY, PASSWORD_KEY, ROOM_DOMAIN_KEY, ROOM_ID_KEY, ROOM_NAME_KEY, SINCE_KEY,
    TOKEN_KEY, USER_DOMAIN_KEY, USER_ID_KEY, USER_NAME_KEY,
)
from src.chat.prompt import MASK, FormField, FormPrompt
from src.state import ConfigStore, ConfigStoreError

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Login state machine."""
    LOGGED_OUT = "logged_out"
    AUTHENTICATING = "authenticating"
    LOGGED_IN = "logged_in"
    LOGIN_FAILED = "login_failed"


@dataclass
class Session:
    """In-memory cache of the persisted session, room and sync state."""
    default_domain: str = DEFAULT_DOMAIN
    user_id: str = ""
    user_name: str = ""
    user_domain: str = ""
    token: str = ""
    state: SessionState = SessionState.LOGGED_OUT
    room_id: str = ""
    room_name: str = ""
    room_domain: str = ""
    filter_id: str = ""
    since: str = ""
    listening: bool = False

    def __post_init__(self) -> None:
        if not self.user_domain:
            self.user_domain = self.default_domain

    @property
    def logged_in(self) -> bool:
        return self.state == SessionState.LOGGED_IN

    def apply(self, key: str, value: Optional[str]) -> None:
        """Mirror a durable store change into the cache."""
        text = value or ""
        if key == USER_DOMAIN_KEY:
            self.user_domain = text or self.default_domain
        elif key in _CACHED_FIELDS:
            setattr(self, _CACHED_FIELDS[key], text)


_CACHED_FIELDS = {
    FILTER_KEY: "filter_id",
    ROOM_ID_KEY: "room_id",
    ROOM_NAME_KEY: "room_name",
    ROOM_DOMAIN_KEY: "room_domain",
    SINCE_KEY: "since",
    TOKEN_KEY: "token",
    USER_ID_KEY: "user_id",
    USER_NAME_KEY: "user_name",
}


class SessionManager:
    """Owns the :class:`Session` and drives login against the home server."""

    def __init__(self, store: ConfigStore, api: MatrixApi, session: Optional[Session] = None,
                 scheme: str = DEFAULT_SCHEME) -> None:
        self._store = store
        self._api = api
        self._session = session or Session()
        self._scheme = scheme
        store.add_listener(self._session.apply)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def store(self) -> ConfigStore:
        return self._store

    @property
    def api(self) -> MatrixApi:
        return self._api

    def server_url(self, domain: str) -> str:
        return f"{self._scheme}://{domain or self._session.default_domain}"

    @property
    def home_server(self) -> str:
        return self.server_url(self._session.user_domain)

    async def reload(self) -> None:
        """Refresh every cached field from the store."""
        for key in (*_CACHED_FIELDS, USER_DOMAIN_KEY):
            self._session.apply(key, await self._store.get_or(key, ""))

    async def login(self) -> bool:
        """Log in with the cached token, falling back to the stored password."""
        s = self._session
        s.state = SessionState.AUTHENTICATING
        s.token = await self._store.get_or(TOKEN_KEY, "")
        server = self.server_url(await self._store.get_or(USER_DOMAIN_KEY, s.default_domain))

        if s.token:
            user_id = await self._api.whoami(server, s.token)
            if user_id:
                s.user_id = user_id
                s.state = SessionState.LOGGED_IN

        if not s.logged_in:
            if await self._api.get_login_type(server):
                await self._password_login(server)
            else:
                logger.info("%s does not offer %s", server, LoginType.PASSWORD.value)

        if s.logged_in:
            logger.info("logged in as %s", s.user_id)
        else:
            s.token = ""
            s.state = SessionState.LOGIN_FAILED
            logger.info("login failed")
        return s.logged_in

    async def _password_login(self, server: str) -> None:
        s = self._session
        user_id = await self._user_id()
        if not user_id:
            logger.warning("no user id stored, set credentials before logging in")
            return
        password = await self._store.get_or(PASSWORD_KEY, "")
        token = await self._api.authenticate_user(server, user_id, password)
        if token is None:
            logger.info("cannot login with type: %s", LoginType.PASSWORD.value)
            return
        await self._store.set_logged(TOKEN_KEY, token)
        s.token = token
        s.user_id = user_id
        s.state = SessionState.LOGGED_IN

    async def _user_id(self) -> str:
        user_id = await self._store.get_or(USER_ID_KEY, "")
        if user_id:
            return user_id
        user_name = await self._store.get_or(USER_NAME_KEY, "")
        if not user_name:
            return ""
        domain = await self._store.get_or(USER_DOMAIN_KEY, self._session.default_domain)
        return canonical_user_id(user_name, domain)

    async def logout(self) -> bool:
        """Invalidate the token on the server (best effort) and forget it locally."""
        s = self._session
        if s.token:
            if not await self._api.logout(self.home_server, s.token):
                logger.info("server logout failed, dropping token locally")
        ok = await self._store.unset_logged(TOKEN_KEY)
        s.token = ""
        s.state = SessionState.LOGGED_OUT
        return ok

    async def edit_credentials(self, prompt: FormPrompt) -> bool:
        """Ask for user name, domain and password and store them.

        A confirmed edit drops the cached token so the next :meth:`login`
        authenticates with the new credentials.

        Returns:
            False if the user cancelled or the values could not be stored.
        """
        fields = [
            FormField(USER_NAME_KEY, "User name", await self._store.get(USER_NAME_KEY)),
            FormField(USER_DOMAIN_KEY, "Domain", await self._store.get(USER_DOMAIN_KEY)),
            FormField(PASSWORD_KEY, "Password",
                      MASK if await self._store.get(PASSWORD_KEY) is not None else None, secret=True),
        ]
        answers = prompt.ask("Matrix login", fields)
        if answers is None:
            logger.info("credential edit cancelled")
            return False

        s = self._session
        changes: dict[str, Optional[str]] = {TOKEN_KEY: None}
        user_name = _answer(answers, USER_NAME_KEY) or s.user_name
        user_domain = _answer(answers, USER_DOMAIN_KEY) or s.user_domain
        if user_name:
            changes[USER_NAME_KEY] = user_name
        changes[USER_DOMAIN_KEY] = user_domain
        password = answers.get(PASSWORD_KEY)
        if password is not None:
            changes[PASSWORD_KEY] = password
        if user_name:
            changes[USER_ID_KEY] = canonical_user_id(user_name, user_domain)

        try:
            await self._store.update(changes)
        except ConfigStoreError as e:
            logger.warning("failed to save credentials: %s", e)
            return False
        s.state = SessionState.LOGGED_OUT
        logger.info("# user = '%s' user_name = '%s' server = '%s'", s.user_id, s.user_name, s.user_domain)
        return True


def canonical_user_id(user_name: str, domain: str) -> str:
    return f"@{user_name}:{domain}"


def _answer(answers: dict[str, Optional[str]], name: str) -> str:
    value = answers.get(name)
    return value.strip() if value else ""
