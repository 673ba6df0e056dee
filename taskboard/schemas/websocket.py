from pydantic import BaseModel
from typing import Dict, Any, Optional
from enum import Enum


class WebSocketEventType(str, Enum):
    """Types of WebSocket events"""
    CONNECTED = "connected"
    JOINED = "joined"
    LEFT = "left"
    USER_JOINED = "user_joined"
    USER_LEFT = "user_left"
    CARD_CREATED = "card_created"
    CARD_UPDATED = "card_updated"
    CARD_MOVED = "card_moved"
    CARD_DELETED = "card_deleted"
    LIST_CREATED = "list_created"
    LIST_UPDATED = "list_updated"
    LIST_DELETED = "list_deleted"
    COMMENT_ADDED = "comment_added"
    COMMENT_UPDATED = "comment_updated"
    COMMENT_DELETED = "comment_deleted"
    ERROR = "error"
    PONG = "pong"


# Client events relayed as-is to the rest of the room
RELAY_EVENTS = frozenset({
    WebSocketEventType.CARD_CREATED,
    WebSocketEventType.CARD_UPDATED,
    WebSocketEventType.CARD_MOVED,
    WebSocketEventType.CARD_DELETED,
    WebSocketEventType.LIST_CREATED,
    WebSocketEventType.LIST_UPDATED,
    WebSocketEventType.LIST_DELETED,
    WebSocketEventType.COMMENT_ADDED,
    WebSocketEventType.COMMENT_UPDATED,
    WebSocketEventType.COMMENT_DELETED,
})


class WebSocketCommandType(str, Enum):
    """Commands from client to server"""
    JOIN_BOARD = "join_board"
    LEAVE_BOARD = "leave_board"
    PING = "ping"


class WebSocketMessage(BaseModel):
    """Frame sent to clients"""
    event: WebSocketEventType
    data: Dict[str, Any] = {}


class WebSocketCommand(BaseModel):
    """Control frame from a client"""
    command: WebSocketCommandType
    data: Dict[str, Any] = {}


class WebSocketBoardRef(BaseModel):
    """Payload of join_board / leave_board"""
    board_id: int


class WebSocketErrorMessage(BaseModel):
    """Error message for WebSocket communication"""
    message: str
    code: Optional[int] = None
