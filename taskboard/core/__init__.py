from taskboard.core.config import Settings, get_settings
