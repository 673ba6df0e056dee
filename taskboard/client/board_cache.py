"""Local copy of one board as a client sees it.

Lists are kept sorted by ``order`` and each list holds its cards sorted by
``order``. Every mutator returns False when the change can not be applied to
what is cached (unknown card or list), which callers take as the signal that
the cache has drifted from the server and must be reloaded.
"""
import copy
from typing import Any, Dict, List, Optional, Tuple

CARD_EVENTS = frozenset({"card_created", "card_updated", "card_moved", "card_deleted"})
LIST_EVENTS = frozenset({"list_created", "list_updated", "list_deleted"})
COMMENT_EVENTS = frozenset({"comment_added", "comment_updated", "comment_deleted"})


def _by_order(item: Dict[str, Any]):
    return (item.get("order", 0), item.get("id", 0))


class BoardCache:
    def __init__(self):
        self.board: Optional[Dict[str, Any]] = None
        self.lists: List[Dict[str, Any]] = []

    @property
    def board_id(self) -> Optional[int]:
        return self.board["id"] if self.board else None

    def load(self, board: Dict[str, Any]) -> None:
        """Replace the cache with a board payload as returned by GET /boards/{id}"""
        self.board = {key: value for key, value in board.items() if key != "lists"}
        self.lists = sorted(
            (self._copy_list(board_list) for board_list in board.get("lists", [])),
            key=_by_order,
        )

    @staticmethod
    def _copy_list(board_list: Dict[str, Any]) -> Dict[str, Any]:
        copied = dict(board_list)
        copied["cards"] = sorted((dict(card) for card in board_list.get("cards", [])), key=_by_order)
        return copied

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy({"board": self.board, "lists": self.lists})

    def find_list(self, list_id) -> Optional[Dict[str, Any]]:
        for board_list in self.lists:
            if board_list["id"] == list_id:
                return board_list
        return None

    def _locate_card(self, card_id) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        for board_list in self.lists:
            for card in board_list["cards"]:
                if card["id"] == card_id:
                    return board_list, card
        return None, None

    def find_card(self, card_id) -> Optional[Dict[str, Any]]:
        return self._locate_card(card_id)[1]

    def add_list(self, board_list: Dict[str, Any]) -> bool:
        if self.find_list(board_list["id"]) is not None:
            return self.update_list(board_list["id"], board_list)
        self.lists.append(self._copy_list(board_list))
        self.lists.sort(key=_by_order)
        return True

    def update_list(self, list_id, updates: Dict[str, Any]) -> bool:
        board_list = self.find_list(list_id)
        if board_list is None:
            return False
        changes = {key: value for key, value in updates.items() if key != "cards"}
        board_list.update(changes)
        if "cards" in updates:
            board_list["cards"] = sorted((dict(card) for card in updates["cards"]), key=_by_order)
        self.lists.sort(key=_by_order)
        return True

    def remove_list(self, list_id) -> bool:
        board_list = self.find_list(list_id)
        if board_list is None:
            return False
        self.lists.remove(board_list)
        return True

    def add_card(self, card: Dict[str, Any]) -> bool:
        """Insert a card into its list; unlisted cards and unknown lists are refused"""
        if self.find_card(card["id"]) is not None:
            return self.update_card(card["id"], card)
        board_list = self.find_list(card.get("list_id"))
        if board_list is None:
            return False
        board_list["cards"].append(dict(card))
        board_list["cards"].sort(key=_by_order)
        return True

    def update_card(self, card_id, updates: Dict[str, Any]) -> bool:
        source, card = self._locate_card(card_id)
        if card is None:
            return False

        new_list_id = updates.get("list_id", card.get("list_id"))
        if new_list_id != source["id"]:
            target = self.find_list(new_list_id)
            if target is None:
                return False
            source["cards"].remove(card)
            card.update(updates)
            target["cards"].append(card)
            target["cards"].sort(key=_by_order)
            return True

        card.update(updates)
        source["cards"].sort(key=_by_order)
        return True

    def remove_card(self, card_id) -> bool:
        source, card = self._locate_card(card_id)
        if card is None:
            return False
        source["cards"].remove(card)
        return True

    def move_card(self, card_id, new_list_id, new_order: int) -> bool:
        """Take the card out of its list and insert it into ``new_list_id`` at ``new_order``"""
        source, card = self._locate_card(card_id)
        target = self.find_list(new_list_id)
        if card is None or target is None:
            return False

        source["cards"].remove(card)
        card["list_id"] = new_list_id
        card["order"] = new_order
        target["cards"].append(card)
        target["cards"].sort(key=_by_order)
        return True

    def apply_event(self, event: str, data: Dict[str, Any]) -> bool:
        """Apply a relayed board event; False when it does not fit the cache"""
        try:
            if event == "card_created":
                return self.add_card(data["card"])
            if event == "card_updated":
                return self.update_card(data["card"]["id"], data["card"])
            if event == "card_moved":
                card = data["card"]
                return self.move_card(card["id"], card.get("list_id"), card.get("order", 0))
            if event == "card_deleted":
                return self.remove_card(data["card_id"])
            if event == "list_created":
                return self.add_list(data["list"])
            if event == "list_updated":
                return self.update_list(data["list"]["id"], data["list"])
            if event == "list_deleted":
                return self.remove_list(data["list_id"])
        except (KeyError, TypeError):
            return False

        # Comments live in the card detail view, not in the board cache
        return event in COMMENT_EVENTS
