from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from taskboard.schemas.auth import UserProfile
from taskboard.schemas.board_list import ListDetailResponse


class Label(BaseModel):
    """Board-scoped label definition"""
    id: str
    name: str
    color: str


class BoardCreate(BaseModel):
    """Schema for board creation"""
    title: str = Field(..., min_length=1)
    description: Optional[str] = None


class BoardUpdate(BaseModel):
    """Schema for board update; labels replace the existing set"""
    title: Optional[str] = None
    description: Optional[str] = None
    labels: Optional[List[Label]] = None


class BoardMemberAdd(BaseModel):
    member_id: Optional[int] = None


class BoardResponse(BaseModel):
    """Board with owner and members as profiles"""
    id: int
    title: str
    description: str = ""
    owner_id: int
    owner: UserProfile
    members: List[UserProfile] = []
    labels: List[Label] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BoardCompleteResponse(BoardResponse):
    """Board with its lists and their cards"""
    lists: List[ListDetailResponse] = []


class BoardsResponse(BaseModel):
    """Schema for list of boards"""
    boards: List[BoardResponse]
    total: int = 0
