from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
import redis

from roompages.api.deps import get_host, get_redis
from roompages.api.models import (
    CommandRequest,
    CommandResponse,
    MailboxMessage,
    MailboxResponse,
    MessageRequest,
    PageState,
    PointsAwardRequest,
    PointsAwardResponse,
    RoomCreateRequest,
    RoomState,
    UserJoinRequest,
    UserRenameRequest,
    UserState,
)
from roompages.commands import dispatch_command, dispatch_message
from roompages.pages.directory import Viewer, to_id
from roompages.pages.host import PageHost
from roompages.shop import store
from roompages.shop.page import PAGE_ID as POINTS_SHOP_PAGE_ID
from roompages.streams import Mailbox, latest_mailbox_id, read_mailbox
from roompages.websocket_hub import hub

router = APIRouter()


def _user_state(viewer: Viewer) -> UserState:
    return UserState(user_id=viewer.user_id, name=viewer.name, developer=viewer.developer, ranks=dict(viewer.ranks))


def _require_viewer(host: PageHost, user_id: str) -> Viewer:
    viewer = host.directory.resolve_viewer(user_id)
    if viewer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return viewer


async def _notify(r: redis.Redis, user_id: str, page_id: str | None) -> None:
    if page_id is None:
        return
    latest_id = latest_mailbox_id(r=r, mailbox=Mailbox(user_id=user_id))
    await hub.notify_pages_updated(user_id, page_id=page_id, latest_id=latest_id)


@router.websocket("/ws/user/{user_id}")
async def user_updates_ws(websocket: WebSocket, user_id: str) -> None:
    uid = to_id(user_id)
    await hub.connect(uid, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(websocket)
    except Exception:
        await hub.disconnect(websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/rooms", response_model=RoomState, status_code=status.HTTP_201_CREATED)
async def create_room_route(payload: RoomCreateRequest, host: PageHost = Depends(get_host)) -> RoomState:
    try:
        room = host.directory.add_room(title=payload.title, alias=payload.alias)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return RoomState(room_id=room.id, title=room.title, alias=room.alias)


@router.post("/users", response_model=UserState, status_code=status.HTTP_201_CREATED)
async def join_route(payload: UserJoinRequest, host: PageHost = Depends(get_host)) -> UserState:
    ranks = {}
    for room_name, rank in payload.ranks.items():
        room = host.directory.search_room(room_name)
        ranks[room.id if room is not None else to_id(room_name)] = rank

    try:
        viewer = host.directory.add_user(payload.name, ranks=ranks, developer=payload.developer)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return _user_state(viewer)


@router.delete("/users/{user_id}", response_model=UserState)
async def leave_route(user_id: str, host: PageHost = Depends(get_host)) -> UserState:
    viewer = host.directory.remove_user(user_id)
    if viewer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _user_state(viewer)


@router.post("/users/{user_id}/rename", response_model=UserState)
async def rename_route(user_id: str, payload: UserRenameRequest, host: PageHost = Depends(get_host)) -> UserState:
    _require_viewer(host, user_id)
    try:
        viewer = host.rename_user(user_id, payload.name)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    # Open sockets keep receiving nudges under the new identity.
    await hub.move(user_id, viewer.user_id)
    return _user_state(viewer)


@router.post("/commands", response_model=CommandResponse)
async def command_route(
    payload: CommandRequest,
    host: PageHost = Depends(get_host),
    r: redis.Redis = Depends(get_redis),
) -> CommandResponse:
    _require_viewer(host, payload.user_id)
    try:
        result = dispatch_command(host=host, user_id=payload.user_id, command=payload.command, target=payload.target)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await _notify(r, payload.user_id, result.page_id)
    return CommandResponse(message=result.message, page_id=result.page_id)


@router.post("/messages", response_model=CommandResponse)
async def message_route(
    payload: MessageRequest,
    host: PageHost = Depends(get_host),
    r: redis.Redis = Depends(get_redis),
) -> CommandResponse:
    _require_viewer(host, payload.user_id)
    try:
        result = dispatch_message(host=host, user_id=payload.user_id, message=payload.message)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await _notify(r, payload.user_id, result.page_id)
    return CommandResponse(message=result.message, page_id=result.page_id)


@router.get("/pages/{page_id}/{user_id}", response_model=PageState)
async def page_state_route(page_id: str, user_id: str, host: PageHost = Depends(get_host)) -> PageState:
    page = host.find_page(page_id, user_id)
    if page is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")

    return PageState(
        page_id=page.page_id,
        user_id=page.user_id,
        user_name=page.user_name,
        room_id=page.room.id,
        lifecycle=str(page.lifecycle.current_state.id),
        overlay_name=page.channel.overlay_name or None,
        readonly=page.readonly,
        is_room_staff=page.is_room_staff,
        components=[c.command_name for c in page.components],
    )


@router.get("/users/{user_id}/mailbox", response_model=MailboxResponse)
async def get_user_mailbox_route(
    user_id: str,
    count: int = 20,
    start: str = "-",
    end: str = "+",
    r: redis.Redis = Depends(get_redis),
) -> MailboxResponse:
    """Read a user's delivery stream (pages, overlays, and retractions in order)."""

    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    mailbox = Mailbox(user_id=user_id)
    try:
        entries = read_mailbox(r=r, mailbox=mailbox, count=count, start=start, end=end)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    messages = [MailboxMessage(id=mid, fields=fields) for mid, fields in entries]
    return MailboxResponse(user_id=user_id, stream=mailbox.key, messages=messages)


@router.post("/rooms/{room_id}/points", response_model=PointsAwardResponse)
async def award_points_route(
    room_id: str,
    payload: PointsAwardRequest,
    host: PageHost = Depends(get_host),
    r: redis.Redis = Depends(get_redis),
) -> PointsAwardResponse:
    """Dev endpoint: award annual points/bits and refresh the user's open shop page."""

    room = host.directory.search_room(room_id)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")

    user_id = to_id(payload.user_id)
    total = store.add_annual_points(
        r=r,
        room_id=room.id,
        leaderboard=payload.leaderboard,
        user_id=user_id,
        amount=payload.amount,
    )

    page = host.find_page(POINTS_SHOP_PAGE_ID, user_id)
    if page is not None and page.room.id == room.id:
        page.send()
        await _notify(r, user_id, page.page_id)

    return PointsAwardResponse(room_id=room.id, user_id=user_id, leaderboard=payload.leaderboard, total=total)
