from datetime import datetime
from pydantic import BaseModel, Field

from taskboard.schemas.auth import UserProfile


class CommentCreate(BaseModel):
    """Schema for comment creation"""
    card_id: int
    text: str = Field(..., min_length=1)


class CommentUpdate(BaseModel):
    """Schema for comment update"""
    text: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    """Schema for comment response, with the author profile"""
    id: int
    text: str
    card_id: int
    user_id: int
    author: UserProfile
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
