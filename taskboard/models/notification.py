from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index

from taskboard.db.base import Base


NOTIFICATION_TYPES = ("card", "comment", "board", "member", "system")
RELATED_TYPES = ("card", "board", "list", "comment")


class Notification(Base):
    """User-facing notification created by board activity"""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read_created", "user_id", "is_read", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)  # One of NOTIFICATION_TYPES
    related_id = Column(Integer, nullable=True)
    related_type = Column(String(20), nullable=True)  # One of RELATED_TYPES
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
