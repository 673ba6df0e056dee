from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from taskboard.schemas.card import CardResponse


class ListCreate(BaseModel):
    board_id: int
    title: str = Field(..., min_length=1)


class ListUpdate(BaseModel):
    title: Optional[str] = None
    order: Optional[int] = None


class ListOrderItem(BaseModel):
    list_id: int
    order: int


class ListReorder(BaseModel):
    board_id: int
    list_orders: List[ListOrderItem]


class ListResponse(BaseModel):
    id: int
    title: str
    board_id: int
    order: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ListDetailResponse(ListResponse):
    """List with its cards in order"""
    card_ids: List[int] = []
    cards: List[CardResponse] = []
