from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table, JSON
from sqlalchemy.orm import relationship

from taskboard.db.base import Base


# Board membership; the composite primary key makes it a set
board_users = Table(
    "board_users",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("board_id", Integer, ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True),
)


class Board(Base):
    """Top-level container owned by one user and shared with its members"""

    __tablename__ = "boards"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # [{"id": ..., "name": ..., "color": ...}]
    labels = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", foreign_keys=[owner_id])

    # Owner is not required to be listed here to have access
    members = relationship("User", secondary=board_users, order_by="User.id")

    lists = relationship("BoardList", back_populates="board", order_by="[BoardList.order, BoardList.id]")
