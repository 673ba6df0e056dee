import httpx
from typing import Any, Dict, Optional

from taskboard.client.board_cache import BoardCache, CARD_EVENTS, LIST_EVENTS, COMMENT_EVENTS
from taskboard.logs import debug_logger

BOARD_EVENTS = CARD_EVENTS | LIST_EVENTS | COMMENT_EVENTS


class BoardSync:
    """Keeps a BoardCache in step with the API and with relayed room events.

    Card moves are applied to the cache first and then sent to the server;
    a failed request throws the optimistic state away by reloading the board.
    Relayed events are advisory: one that does not fit the cache also
    triggers a reload, since the server never validates them.
    """

    def __init__(self, client: httpx.AsyncClient, board_id: int, cache: Optional[BoardCache] = None):
        self.client = client
        self.board_id = board_id
        self.cache = cache or BoardCache()

    async def load(self) -> BoardCache:
        response = await self.client.get(f"/api/v1/boards/{self.board_id}")
        response.raise_for_status()
        self.cache.load(response.json())
        return self.cache

    async def reload(self) -> BoardCache:
        debug_logger.info(f"Reloading board {self.board_id} from the API")
        return await self.load()

    async def move_card(
        self,
        card_id: int,
        new_list_id: int,
        new_order: int,
        status: Optional[str] = None
    ) -> bool:
        """Optimistic move; True once the server has accepted it"""
        self.cache.move_card(card_id, new_list_id, new_order)

        payload = {"card_id": card_id, "new_list_id": new_list_id, "new_order": new_order}
        if status is not None:
            payload["status"] = status

        try:
            response = await self.client.post("/api/v1/cards/move", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            debug_logger.warning(f"Move of card {card_id} failed, discarding local state: {e}")
            await self.reload()
            return False

        card = response.json()["card"]
        if not self.cache.update_card(card["id"], card):
            await self.reload()
        return True

    def _is_this_board(self, board_id) -> bool:
        """Relayed ids are not validated by the server and may arrive as strings"""
        try:
            return int(board_id) == self.board_id
        except (TypeError, ValueError):
            return False

    async def handle_broadcast(self, message: Dict[str, Any]) -> bool:
        """Apply a frame received from the board room; True if it was applied"""
        event = message.get("event")
        data = message.get("data") or {}
        if event not in BOARD_EVENTS or not self._is_this_board(data.get("board_id")):
            return False

        if self.cache.apply_event(event, data):
            return True

        debug_logger.info(f"Event '{event}' does not match the cached board {self.board_id}")
        await self.reload()
        return False
