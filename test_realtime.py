import asyncio
import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import WebSocketDisconnect, status

from taskboard.api.v1.websockets import websocket_endpoint, handle_command, handle_event
from taskboard.services.realtime_service import InMemoryRoomRegistry
from taskboard.core.exceptions import ValidationError, BoardAccessDenied, AuthenticationError


def make_socket():
    websocket = MagicMock()
    websocket.send_text = AsyncMock()
    websocket.accept = AsyncMock()
    websocket.close = AsyncMock()
    return websocket


def frames(websocket):
    return [json.loads(call.args[0]) for call in websocket.send_text.call_args_list]


def events(websocket):
    return [frame["event"] for frame in frames(websocket)]


class TestInMemoryRoomRegistry:
    """Rooms, presence and relaying"""

    def setup_method(self):
        self.access_check = AsyncMock(return_value=True)
        self.registry = InMemoryRoomRegistry(access_check=self.access_check)
        self.alice_ws = make_socket()
        self.bob_ws = make_socket()
        self.alice = self.registry.register(self.alice_ws, 1)
        self.bob = self.registry.register(self.bob_ws, 2)

    @pytest.mark.asyncio
    async def test_join_announces_to_others(self):
        assert await self.registry.join(self.alice, 10) is True
        assert await self.registry.join(self.bob, 10) is True

        self.access_check.assert_awaited_with(2, 10)
        assert self.registry.room_members(10) == {self.alice, self.bob}
        assert events(self.alice_ws) == ["user_joined"]
        assert frames(self.alice_ws)[0]["data"] == {"user_id": 2, "connection_id": self.bob, "board_id": 10}
        assert events(self.bob_ws) == []

    @pytest.mark.asyncio
    async def test_denied_join_is_silent(self):
        await self.registry.join(self.alice, 10)
        self.access_check.return_value = False

        assert await self.registry.join(self.bob, 10) is False

        assert self.registry.room_members(10) == {self.alice}
        assert events(self.alice_ws) == []

    @pytest.mark.asyncio
    async def test_join_twice_does_not_announce_again(self):
        await self.registry.join(self.alice, 10)
        await self.registry.join(self.bob, 10)
        self.alice_ws.send_text.reset_mock()

        assert await self.registry.join(self.bob, 10) is True
        assert events(self.alice_ws) == []

    @pytest.mark.asyncio
    async def test_relay_excludes_sender(self):
        await self.registry.join(self.alice, 10)
        await self.registry.join(self.bob, 10)
        self.alice_ws.send_text.reset_mock()

        delivered = await self.registry.relay(self.bob, "card_moved", {"board_id": "10", "card": {"id": 5}})

        assert delivered == 1
        assert frames(self.alice_ws) == [
            {"event": "card_moved", "data": {"board_id": "10", "card": {"id": 5}}}
        ]
        assert events(self.bob_ws) == []

    @pytest.mark.asyncio
    async def test_relay_rejections(self):
        await self.registry.join(self.alice, 10)

        with pytest.raises(ValidationError):
            await self.registry.relay(self.alice, "self_destruct", {"board_id": 10})
        with pytest.raises(ValidationError):
            await self.registry.relay(self.alice, "user_joined", {"board_id": 10})
        with pytest.raises(ValidationError, match="Missing board_id"):
            await self.registry.relay(self.alice, "card_moved", {})
        with pytest.raises(ValidationError, match="Invalid board_id"):
            await self.registry.relay(self.alice, "card_moved", {"board_id": "ten"})
        with pytest.raises(BoardAccessDenied):
            await self.registry.relay(self.bob, "card_moved", {"board_id": 10})

    @pytest.mark.asyncio
    async def test_failed_send_disconnects_peer(self):
        await self.registry.join(self.alice, 10)
        await self.registry.join(self.bob, 10)
        self.bob_ws.send_text.side_effect = RuntimeError("socket closed")

        delivered = await self.registry.relay(self.alice, "card_created", {"board_id": 10})

        assert delivered == 0
        assert self.registry.get_connection(self.bob) is None
        assert self.registry.room_members(10) == {self.alice}
        assert events(self.alice_ws)[-1] == "user_left"

    @pytest.mark.asyncio
    async def test_leave_and_disconnect_announce(self):
        await self.registry.join(self.alice, 10)
        await self.registry.join(self.bob, 10)
        await self.registry.join(self.bob, 11)
        self.alice_ws.send_text.reset_mock()

        assert await self.registry.leave(self.bob, 11) is True
        assert await self.registry.leave(self.bob, 11) is False
        assert events(self.alice_ws) == []

        await self.registry.disconnect(self.bob)

        assert events(self.alice_ws) == ["user_left"]
        assert self.registry.rooms_of(self.bob) == set()
        assert self.registry.get_stats() == {"connections": 1, "rooms": {10: 1}}

    @pytest.mark.asyncio
    async def test_last_member_leaving_drops_room(self):
        await self.registry.join(self.alice, 10)
        await self.registry.leave(self.alice, 10)

        assert self.registry.rooms == {}

    @pytest.mark.asyncio
    async def test_disconnect_during_access_check_does_not_join(self):
        gate = asyncio.Event()

        async def slow_check(user_id, board_id):
            await gate.wait()
            return True

        self.registry.access_check = slow_check
        pending = asyncio.create_task(self.registry.join(self.bob, 7))
        await asyncio.sleep(0)

        await self.registry.disconnect(self.bob)
        gate.set()

        assert await pending is False
        assert self.registry.room_members(7) == set()
        assert self.registry.rooms == {}


class TestWebSocketHandlers:
    """Command and event frames"""

    def setup_method(self):
        self.registry = InMemoryRoomRegistry(access_check=AsyncMock(return_value=True))
        self.websocket = make_socket()
        self.connection_id = self.registry.register(self.websocket, 1)

    @pytest.mark.asyncio
    async def test_ping(self):
        await handle_command(self.registry, self.connection_id, self.websocket, {"command": "ping"})
        assert events(self.websocket) == ["pong"]

    @pytest.mark.asyncio
    async def test_join_and_leave_board(self):
        await handle_command(
            self.registry, self.connection_id, self.websocket,
            {"command": "join_board", "data": {"board_id": 7}},
        )
        await handle_command(
            self.registry, self.connection_id, self.websocket,
            {"command": "leave_board", "data": {"board_id": 7}},
        )

        assert frames(self.websocket) == [
            {"event": "joined", "data": {"board_id": 7, "members": 1}},
            {"event": "left", "data": {"board_id": 7}},
        ]

    @pytest.mark.asyncio
    async def test_join_denied(self):
        self.registry.access_check.return_value = False

        await handle_command(
            self.registry, self.connection_id, self.websocket,
            {"command": "join_board", "data": {"board_id": 7}},
        )

        assert frames(self.websocket) == [
            {"event": "error", "data": {"message": "Access denied to this board", "code": 403}}
        ]

    @pytest.mark.asyncio
    async def test_bad_commands(self):
        await handle_command(self.registry, self.connection_id, self.websocket, {"command": "dance"})
        await handle_command(self.registry, self.connection_id, self.websocket, {"command": "join_board"})

        assert [frame["data"]["code"] for frame in frames(self.websocket)] == [400, 400]
        assert frames(self.websocket)[1]["data"]["message"] == "Missing board_id"

    @pytest.mark.asyncio
    async def test_event_outside_room_reports_error(self):
        await handle_event(
            self.registry, self.connection_id, self.websocket,
            {"event": "card_updated", "data": {"board_id": 7}},
        )

        assert frames(self.websocket)[0]["event"] == "error"
        assert frames(self.websocket)[0]["data"]["code"] == 404

    @pytest.mark.asyncio
    async def test_error_frame_shape(self):
        await handle_event(self.registry, self.connection_id, self.websocket, {"event": "card_moved", "data": {}})

        assert frames(self.websocket) == [
            {"event": "error", "data": {"message": "Missing board_id", "code": 400}}
        ]


class TestWebSocketEndpoint:
    """Connection lifecycle"""

    @pytest.mark.asyncio
    async def test_bad_token_is_refused(self):
        registry = InMemoryRoomRegistry(access_check=AsyncMock(return_value=True))
        websocket = make_socket()

        with patch(
            "taskboard.api.v1.websockets.get_current_user_from_token",
            AsyncMock(side_effect=AuthenticationError("Invalid authentication credentials")),
        ):
            await websocket_endpoint(websocket, token="garbage", registry=registry)

        assert frames(websocket) == [
            {"event": "error", "data": {"message": "Invalid authentication credentials", "code": 401}}
        ]
        websocket.close.assert_awaited_once_with(code=status.WS_1008_POLICY_VIOLATION)
        assert registry.connections == {}

    @pytest.mark.asyncio
    async def test_session_is_cleaned_up_on_disconnect(self):
        registry = InMemoryRoomRegistry(access_check=AsyncMock(return_value=True))
        websocket = make_socket()
        websocket.receive_text = AsyncMock(side_effect=[
            "not json",
            json.dumps({"command": "join_board", "data": {"board_id": 3}}),
            json.dumps({"hello": "world"}),
            WebSocketDisconnect(),
        ])
        user = MagicMock(id=42)

        with patch(
            "taskboard.api.v1.websockets.get_current_user_from_token",
            AsyncMock(return_value=user),
        ):
            await websocket_endpoint(websocket, token="valid", registry=registry)

        sent = frames(websocket)
        assert [frame["event"] for frame in sent] == ["connected", "error", "joined", "error"]
        assert sent[0]["data"]["user_id"] == 42
        assert sent[1]["data"] == {"message": "Invalid JSON", "code": 400}
        assert registry.connections == {}
        assert registry.rooms == {}

