# Import all models here for Alembic and create_all to discover them
from taskboard.db.base import Base
from taskboard.models.user import User
from taskboard.models.board import Board, board_users
from taskboard.models.board_list import BoardList, list_cards
from taskboard.models.card import Card, Comment, card_users, CardStatus, CardPriority
from taskboard.models.notification import Notification
