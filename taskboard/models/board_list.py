from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship

from taskboard.db.base import Base


# Denormalized card collection of a list; must agree with Card.list_id
list_cards = Table(
    "list_cards",
    Base.metadata,
    Column("list_id", Integer, ForeignKey("lists.id", ondelete="CASCADE"), primary_key=True),
    Column("card_id", Integer, ForeignKey("cards.id", ondelete="CASCADE"), primary_key=True),
)


class BoardList(Base):
    """Ordered column of a board"""

    __tablename__ = "lists"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False, default=0)  # Unique within a board, gaps allowed
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    board = relationship("Board", back_populates="lists")

    cards = relationship("Card", secondary=list_cards, order_by="[Card.order, Card.id]")

    @property
    def card_ids(self):
        return [card.id for card in self.cards]
