"""Response models for the Matrix client-server API."""
from typing import Annotated, Any, Optional
from pydantic import BaseModel, Field, field_validator

from .types import ChatMessage, EventType


class WhoamiResponse(BaseModel):
    user_id: Annotated[str, Field(min_length=1)]
    device_id: Optional[str] = None


class LoginFlow(BaseModel):
    type: Annotated[str, Field()]


class LoginFlowsResponse(BaseModel):
    flows: list[LoginFlow] = []

    def supports(self, login_type: str) -> bool:
        return any(f.type == login_type for f in self.flows)


class LoginResponse(BaseModel):
    access_token: Annotated[str, Field(min_length=1)]
    user_id: Optional[str] = None
    device_id: Optional[str] = None


class RoomAliasResponse(BaseModel):
    room_id: Annotated[str, Field(min_length=1)]
    servers: list[str] = []

    @field_validator("room_id")
    @classmethod
    def validate_room_id(cls, v: str) -> str:
        if not v.startswith("!"):
            raise ValueError("Room id must start with '!'")
        return v


class FilterResponse(BaseModel):
    filter_id: Annotated[str, Field(min_length=1)]


class RoomEvent(BaseModel):
    type: Annotated[str, Field()]
    event_id: Optional[str] = None
    sender: Optional[str] = None
    origin_server_ts: int = 0
    content: dict[str, Any] = {}

    def to_message(self) -> Optional[ChatMessage]:
        """Convert a text-bearing room message event; other events yield None."""
        if self.type != EventType.MESSAGE.value:
            return None
        body = self.content.get("body")
        if not isinstance(body, str) or not self.event_id or not self.sender:
            return None
        return ChatMessage(
            event_id=self.event_id, sender=self.sender, body=body,
            timestamp_ms=self.origin_server_ts, msgtype=str(self.content.get("msgtype", "m.text")),
        )


class Timeline(BaseModel):
    events: list[RoomEvent] = []
    limited: bool = False
    prev_batch: Optional[str] = None


class JoinedRoom(BaseModel):
    timeline: Timeline = Timeline()


class SyncRooms(BaseModel):
    join: dict[str, JoinedRoom] = {}


class SyncResponse(BaseModel):
    next_batch: Annotated[str, Field(min_length=1)]
    rooms: SyncRooms = SyncRooms()

    def messages_for(self, room_id: str) -> list[ChatMessage]:
        room = self.rooms.join.get(room_id)
        if room is None:
            return []
        return [m for m in (e.to_message() for e in room.timeline.events) if m is not None]
