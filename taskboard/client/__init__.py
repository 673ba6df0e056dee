from taskboard.client.board_cache import BoardCache
from taskboard.client.sync import BoardSync
