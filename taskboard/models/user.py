from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime

from taskboard.db.base import Base


class User(Base):
    """Registered user of the task board"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)  # Always stored lower-cased
    hashed_password = Column(String, nullable=False)
    name = Column(String(100), nullable=False)
    avatar = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
