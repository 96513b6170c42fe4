from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from roompages.pages.directory import Rank


class UserJoinRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=18)
    # room id/alias -> rank in that room
    ranks: dict[str, Rank] = Field(default_factory=dict)
    developer: bool = False


class UserRenameRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=18)


class UserState(BaseModel):
    user_id: str
    name: str
    developer: bool
    ranks: dict[str, Rank]


class RoomCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=64)
    alias: str = ""


class RoomState(BaseModel):
    room_id: str
    title: str
    alias: str


class CommandRequest(BaseModel):
    user_id: str
    command: str = Field(..., min_length=1)
    target: str = ""


class MessageRequest(BaseModel):
    user_id: str
    message: str = Field(..., min_length=1, max_length=300)


class CommandResponse(BaseModel):
    message: str | None = None
    page_id: str | None = None


class PointsAwardRequest(BaseModel):
    user_id: str
    leaderboard: Literal["tournament", "game"]
    amount: int


class PointsAwardResponse(BaseModel):
    room_id: str
    user_id: str
    leaderboard: str
    total: int


class PageState(BaseModel):
    """Diagnostics view of a live page."""

    page_id: str
    user_id: str
    user_name: str
    room_id: str
    lifecycle: str
    overlay_name: str | None = None
    readonly: bool
    is_room_staff: bool
    components: list[str]


class MailboxMessage(BaseModel):
    id: str
    fields: dict[str, str]


class MailboxResponse(BaseModel):
    user_id: str
    stream: str
    messages: list[MailboxMessage]
