from datetime import datetime
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table, Text, JSON, Enum
from sqlalchemy.orm import relationship

from taskboard.db.base import Base


class CardStatus(str, enum.Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class CardPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


def _enum_values(enum_class):
    return [member.value for member in enum_class]


card_users = Table(
    "card_users",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("card_id", Integer, ForeignKey("cards.id", ondelete="CASCADE"), primary_key=True)
)


class Card(Base):
    """Unit of work; always belongs to a board, optionally to one of its lists"""

    __tablename__ = "cards"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    list_id = Column(Integer, ForeignKey("lists.id", ondelete="SET NULL"), nullable=True, index=True)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False, default=0)  # Within the list, or within board+status when unlisted
    status = Column(
        Enum(CardStatus, name="card_status", values_callable=_enum_values),
        nullable=False,
        default=CardStatus.TODO,
    )
    priority = Column(
        Enum(CardPriority, name="card_priority", values_callable=_enum_values),
        nullable=False,
        default=CardPriority.MEDIUM,
    )
    labels = Column(JSON, nullable=False, default=list)  # Label ids of the board, not validated
    due_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignees = relationship("User", secondary=card_users, order_by="User.id")

    comments = relationship("Comment", back_populates="card", order_by="[Comment.created_at.desc(), Comment.id.desc()]")


class Comment(Base):
    """Comment left on a card"""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    card_id = Column(Integer, ForeignKey("cards.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    card = relationship("Card", back_populates="comments")

    author = relationship("User")
