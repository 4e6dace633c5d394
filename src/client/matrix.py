"""Matrix client-server API operations used by the sync engine.

Every call reports failure as absence (``None`` or ``False``) and logs a
warning. A transient network error must never escalate past this layer.
"""

import logging
from typing import Optional, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from .exceptions import RateLimitError, TransportError
from .models import (
    FilterResponse, LoginFlowsResponse, LoginResponse, RoomAliasResponse, SyncResponse, WhoamiResponse,
)
from .transport import Transport
from .types import CLIENT_API_PREFIX, ChatMessage, EventType, LoginType

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Extra seconds allowed on top of the server-side long-poll hold time.
SYNC_GRACE_SECONDS = 15.0
TIMELINE_LIMIT = 20


def api_url(server: str, path: str) -> str:
    return f"{server.rstrip('/')}{CLIENT_API_PREFIX}{path}"


def room_filter_body(room_id: str, limit: int = TIMELINE_LIMIT) -> dict:
    """Filter definition restricting sync to message events of one room."""
    return {
        "account_data": {"not_types": ["*"]},
        "presence": {"not_types": ["*"]},
        "room": {
            "rooms": [room_id],
            "account_data": {"not_types": ["*"]},
            "ephemeral": {"not_types": ["*"]},
            "state": {"lazy_load_members": True},
            "timeline": {"limit": limit, "types": [EventType.MESSAGE.value]},
        },
    }


class MatrixApi:
    """Thin, failure-tolerant wrapper over the endpoints the engine needs."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def whoami(self, server: str, token: str) -> Optional[str]:
        status, body = await self._call("whoami", self._transport.get(
            api_url(server, "/account/whoami"), token=token))
        reply = self._parse("whoami", status, body, WhoamiResponse)
        return reply.user_id if reply else None

    async def get_login_type(self, server: str) -> bool:
        """True iff the server offers password login."""
        status, body = await self._call("login flows", self._transport.get(api_url(server, "/login")))
        reply = self._parse("login flows", status, body, LoginFlowsResponse)
        return bool(reply and reply.supports(LoginType.PASSWORD.value))

    async def authenticate_user(self, server: str, user_id: str, password: str) -> Optional[str]:
        payload = {
            "type": LoginType.PASSWORD.value,
            "identifier": {"type": "m.id.user", "user": user_id},
            "password": password,
            "initial_device_display_name": "mtxchat",
        }
        status, body = await self._call("login", self._transport.post(api_url(server, "/login"), payload, retry=False))
        reply = self._parse("login", status, body, LoginResponse)
        return reply.access_token if reply else None

    async def get_room_id(self, server: str, room_alias: str, token: str) -> Optional[str]:
        status, body = await self._call("room alias", self._transport.get(
            api_url(server, f"/directory/room/{quote(room_alias, safe='')}"), token=token))
        reply = self._parse("room alias", status, body, RoomAliasResponse)
        return reply.room_id if reply else None

    async def create_filter(self, server: str, user_id: str, room_id: str, token: str) -> Optional[str]:
        status, body = await self._call("filter", self._transport.post(
            api_url(server, f"/user/{quote(user_id, safe='')}/filter"), room_filter_body(room_id), token=token))
        reply = self._parse("filter", status, body, FilterResponse)
        return reply.filter_id if reply else None

    async def sync(self, server: str, filter_id: str, since: str, timeout_ms: int, room_id: str,
                   token: str) -> Optional[tuple[str, list[ChatMessage]]]:
        """Issue one long-poll and return ``(next_batch, messages)`` for ``room_id``."""
        params: dict[str, str | int] = {"filter": filter_id, "timeout": timeout_ms}
        if since:
            params["since"] = since
        status, body = await self._call("sync", self._transport.get(
            api_url(server, "/sync"), params=params, token=token, retry=False,
            timeout=timeout_ms / 1000 + SYNC_GRACE_SECONDS))
        reply = self._parse("sync", status, body, SyncResponse)
        if reply is None:
            return None
        return reply.next_batch, reply.messages_for(room_id)

    async def logout(self, server: str, token: str) -> bool:
        status, _ = await self._call("logout", self._transport.post(
            api_url(server, "/logout"), {}, token=token, retry=False))
        return status == 200

    async def _call(self, label: str, request) -> tuple[int, dict | None]:
        try:
            return await request
        except RateLimitError as e:
            logger.warning("%s: rate limited (retry after %s ms)", label, e.retry_after_ms)
        except TransportError as e:
            logger.warning("%s: %s", label, e)
        return 0, None

    @staticmethod
    def _parse(label: str, status: int, body: dict | None, model: type[M]) -> Optional[M]:
        if status == 0:
            return None
        if status != 200 or body is None:
            errcode = body.get("errcode") if isinstance(body, dict) else None
            logger.warning("%s: server returned %d %s", label, status, errcode or "")
            return None
        try:
            return model.model_validate(body)
        except ValidationError as e:
            logger.warning("%s: unexpected response: %s", label, e.error_count())
            return None
