"""Mapping between a card status and the list that represents it.

Boards that predate card statuses model them as lists titled after the
status ("To Do", "In Progress", "Done", ...). The status is authoritative;
the list is derived from it here and nowhere else.
"""
from typing import Iterable, Optional

from taskboard.models.card import CardStatus


def status_token(status) -> str:
    if isinstance(status, CardStatus):
        return status.value
    return str(status)


def find_list_for_status(lists: Iterable, status) -> Optional[object]:
    """First list, by order then id, whose title contains the status.

    The comparison is a case-insensitive substring test on the raw status
    value, so ``done`` matches "Done" and "DONE (this week)" while
    ``in_progress`` only matches titles spelling it with the underscore.
    """
    token = status_token(status).lower()
    if not token:
        return None

    for board_list in sorted(lists, key=lambda item: (item.order, item.id)):
        if token in (board_list.title or "").lower():
            return board_list
    return None
