"""Board rooms for live collaboration.

A room is the set of live connections currently viewing one board. Joining
re-checks board access; leaving or disconnecting tells the rest of the room.
Mutation events sent by a client are relayed verbatim to the other members of
its room without being checked against the database: receivers must treat
them as hints and reconcile with the REST API when they do not fit.

The registry is an object owned by the application (``app.state``) and used
through the ``RoomRegistry`` interface, so a pub/sub backed implementation
can replace the in-memory one for multi-process deployments.
"""
import uuid
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from taskboard.core.exceptions import ValidationError, BoardAccessDenied
from taskboard.schemas.websocket import WebSocketEventType, WebSocketMessage, RELAY_EVENTS
from taskboard.logs.server_log import api_logger

AccessCheck = Callable[[int, int], Awaitable[bool]]


class Connection:
    """One authenticated websocket"""

    def __init__(self, connection_id: str, user_id: int, websocket):
        self.connection_id = connection_id
        self.user_id = user_id
        self.websocket = websocket

    async def send(self, message: WebSocketMessage):
        await self.websocket.send_text(message.model_dump_json())


class RoomRegistry(ABC):
    """Room membership and fan-out for board events"""

    @abstractmethod
    def register(self, websocket, user_id: int) -> str:
        """Track an authenticated websocket; returns its connection id"""

    @abstractmethod
    async def join(self, connection_id: str, board_id: int) -> bool:
        """Add the connection to the board room if its user may access the board"""

    @abstractmethod
    async def leave(self, connection_id: str, board_id: int) -> bool:
        """Remove the connection from one room"""

    @abstractmethod
    async def disconnect(self, connection_id: str) -> None:
        """Remove the connection from every room and forget it"""

    @abstractmethod
    async def relay(self, connection_id: str, event: str, data: Dict[str, Any]) -> int:
        """Send a client event to the other members of its board room"""

    @abstractmethod
    def room_members(self, board_id: int) -> Set[str]:
        ...

    @abstractmethod
    def rooms_of(self, connection_id: str) -> Set[int]:
        ...


class InMemoryRoomRegistry(RoomRegistry):
    """Process-local registry; all state lives in this object"""

    def __init__(self, access_check: AccessCheck):
        self.access_check = access_check
        # {connection_id: Connection}
        self.connections: Dict[str, Connection] = {}
        # {board_id: set(connection_ids)}
        self.rooms: Dict[int, Set[str]] = {}

    def register(self, websocket, user_id: int) -> str:
        connection_id = uuid.uuid4().hex
        self.connections[connection_id] = Connection(connection_id, user_id, websocket)
        api_logger.info(f"WebSocket: User {user_id} connected as {connection_id}")
        return connection_id

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return self.connections.get(connection_id)

    def room_members(self, board_id: int) -> Set[str]:
        return set(self.rooms.get(board_id, set()))

    def rooms_of(self, connection_id: str) -> Set[int]:
        return {board_id for board_id, members in self.rooms.items() if connection_id in members}

    async def join(self, connection_id: str, board_id: int) -> bool:
        connection = self.connections.get(connection_id)
        if connection is None:
            return False

        if not await self.access_check(connection.user_id, board_id):
            api_logger.warning(
                f"WebSocket: Access denied for user {connection.user_id} to join board {board_id}"
            )
            return False

        # Dropped while the access check was pending
        if connection_id not in self.connections:
            return False

        members = self.rooms.setdefault(board_id, set())
        if connection_id in members:
            return True
        members.add(connection_id)

        api_logger.info(f"WebSocket: User {connection.user_id} joined board {board_id}")
        await self._broadcast(
            board_id,
            WebSocketMessage(
                event=WebSocketEventType.USER_JOINED,
                data=self._presence(connection, board_id),
            ),
            exclude=connection_id,
        )
        return True

    async def leave(self, connection_id: str, board_id: int) -> bool:
        members = self.rooms.get(board_id)
        if not members or connection_id not in members:
            return False

        members.discard(connection_id)
        if not members:
            del self.rooms[board_id]

        connection = self.connections.get(connection_id)
        user_id = connection.user_id if connection else None
        api_logger.info(f"WebSocket: User {user_id} left board {board_id}")

        if connection is not None:
            await self._broadcast(
                board_id,
                WebSocketMessage(
                    event=WebSocketEventType.USER_LEFT,
                    data=self._presence(connection, board_id),
                ),
            )
        return True

    async def disconnect(self, connection_id: str) -> None:
        connection = self.connections.pop(connection_id, None)
        if connection is None:
            return

        boards = self.rooms_of(connection_id)
        for board_id in boards:
            members = self.rooms[board_id]
            members.discard(connection_id)
            if not members:
                del self.rooms[board_id]

        api_logger.info(
            f"WebSocket: User {connection.user_id} disconnected ({connection_id}), "
            f"left boards {sorted(boards)}"
        )
        for board_id in boards:
            await self._broadcast(
                board_id,
                WebSocketMessage(
                    event=WebSocketEventType.USER_LEFT,
                    data=self._presence(connection, board_id),
                ),
            )

    async def relay(self, connection_id: str, event: str, data: Dict[str, Any]) -> int:
        """Relay a mutation event; returns how many peers it was sent to"""
        try:
            event_type = WebSocketEventType(event)
        except ValueError:
            raise ValidationError(f"Unknown event: {event}")
        if event_type not in RELAY_EVENTS:
            raise ValidationError(f"Event {event} can not be relayed")

        if not isinstance(data, dict) or data.get("board_id") is None:
            raise ValidationError("Missing board_id")
        try:
            board_id = int(data["board_id"])
        except (TypeError, ValueError):
            raise ValidationError("Invalid board_id")

        if connection_id not in self.rooms.get(board_id, set()):
            raise BoardAccessDenied(f"Not joined to board {board_id}")

        connection = self.connections[connection_id]
        api_logger.info(
            f"WebSocket: Relaying '{event_type.value}' from user {connection.user_id} on board {board_id}"
        )
        return await self._broadcast(
            board_id,
            WebSocketMessage(event=event_type, data=data),
            exclude=connection_id,
        )

    def get_stats(self) -> Dict[str, Any]:
        return {
            "connections": len(self.connections),
            "rooms": {board_id: len(members) for board_id, members in self.rooms.items()},
        }

    @staticmethod
    def _presence(connection: Connection, board_id: int) -> Dict[str, Any]:
        return {
            "user_id": connection.user_id,
            "connection_id": connection.connection_id,
            "board_id": board_id,
        }

    async def _broadcast(
        self,
        board_id: int,
        message: WebSocketMessage,
        exclude: Optional[str] = None
    ) -> int:
        """Send to every room member except ``exclude``; dead peers are dropped"""
        delivered = 0
        dead: List[str] = []
        for connection_id in list(self.rooms.get(board_id, set())):
            if connection_id == exclude:
                continue
            connection = self.connections.get(connection_id)
            if connection is None:
                continue
            try:
                await connection.send(message)
                delivered += 1
            except Exception as e:
                api_logger.error(
                    f"WebSocket: Failed to send '{message.event.value}' to {connection_id}: {str(e)}"
                )
                dead.append(connection_id)

        for connection_id in dead:
            await self.disconnect(connection_id)
        return delivered
