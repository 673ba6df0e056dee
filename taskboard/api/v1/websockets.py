from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends, status
from pydantic import ValidationError as PydanticValidationError
from typing import Optional, Dict, Any
import json

from taskboard.db.database import async_session_factory
from taskboard.api.dependencies.auth import get_current_user_from_token, get_room_registry
from taskboard.services.realtime_service import RoomRegistry
from taskboard.core.exceptions import AppError, AuthenticationError
from taskboard.logs.server_log import api_logger
from taskboard.schemas.websocket import (
    WebSocketEventType,
    WebSocketMessage,
    WebSocketCommand,
    WebSocketCommandType,
    WebSocketBoardRef,
    WebSocketErrorMessage,
)

router = APIRouter(tags=["websockets"])


def error_frame(message: str, code: int) -> str:
    return WebSocketMessage(
        event=WebSocketEventType.ERROR,
        data=WebSocketErrorMessage(message=message, code=code).model_dump(),
    ).model_dump_json()


async def handle_command(
    registry: RoomRegistry,
    connection_id: str,
    websocket: WebSocket,
    message_data: Dict[str, Any]
):
    """Execute a join_board / leave_board / ping command"""
    try:
        command = WebSocketCommand(**message_data)
    except PydanticValidationError:
        await websocket.send_text(error_frame(f"Unknown command: {message_data.get('command')}", 400))
        return

    if command.command == WebSocketCommandType.PING:
        await websocket.send_text(WebSocketMessage(event=WebSocketEventType.PONG).model_dump_json())
        return

    try:
        board_id = WebSocketBoardRef(**command.data).board_id
    except PydanticValidationError:
        await websocket.send_text(error_frame("Missing board_id", 400))
        return

    if command.command == WebSocketCommandType.JOIN_BOARD:
        if not await registry.join(connection_id, board_id):
            await websocket.send_text(error_frame("Access denied to this board", 403))
            return
        reply = WebSocketMessage(
            event=WebSocketEventType.JOINED,
            data={"board_id": board_id, "members": len(registry.room_members(board_id))},
        )
    else:
        await registry.leave(connection_id, board_id)
        reply = WebSocketMessage(event=WebSocketEventType.LEFT, data={"board_id": board_id})

    await websocket.send_text(reply.model_dump_json())


async def handle_event(
    registry: RoomRegistry,
    connection_id: str,
    websocket: WebSocket,
    message_data: Dict[str, Any]
):
    """Relay a board mutation event to the other members of the room"""
    try:
        await registry.relay(connection_id, message_data.get("event"), message_data.get("data"))
    except AppError as e:
        await websocket.send_text(error_frame(e.message, e.status_code))


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = None,
    registry: RoomRegistry = Depends(get_room_registry)
):
    """
    WebSocket endpoint for live board collaboration.

    Authentication is done via token query parameter:
    ws://example.com/api/v1/ws?token=your_access_token

    Commands from client:
    - {"command": "join_board", "data": {"board_id": 123}}
    - {"command": "leave_board", "data": {"board_id": 123}}
    - {"command": "ping"}

    Events from client, relayed to the rest of the room:
    - {"event": "card_moved", "data": {"board_id": 123, ...}}
    """
    client_host = websocket.client.host if websocket.client else "unknown"
    await websocket.accept()
    api_logger.info(f"WebSocket: New connection attempt from {client_host}")

    try:
        async with async_session_factory() as db:
            user = await get_current_user_from_token(token=token, db=db)
    except AuthenticationError as e:
        api_logger.warning(f"WebSocket: Authentication failed from {client_host}: {e.message}")
        await websocket.send_text(error_frame(e.message, e.status_code))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connection_id = registry.register(websocket, user.id)
    try:
        await websocket.send_text(WebSocketMessage(
            event=WebSocketEventType.CONNECTED,
            data={"connection_id": connection_id, "user_id": user.id},
        ).model_dump_json())

        while True:
            raw = await websocket.receive_text()
            try:
                message_data = json.loads(raw)
            except ValueError:
                await websocket.send_text(error_frame("Invalid JSON", 400))
                continue

            if not isinstance(message_data, dict):
                await websocket.send_text(error_frame("Invalid message format", 400))
            elif "command" in message_data:
                await handle_command(registry, connection_id, websocket, message_data)
            elif "event" in message_data:
                await handle_event(registry, connection_id, websocket, message_data)
            else:
                await websocket.send_text(error_frame("Invalid message format", 400))

    except WebSocketDisconnect:
        api_logger.info(f"WebSocket: User {user.id} disconnected (normal)")
    finally:
        await registry.disconnect(connection_id)
