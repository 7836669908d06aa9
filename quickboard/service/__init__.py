"""Board service: accounts and per-user board documents over HTTP."""

from .config import Settings, get_settings
from .server import BoardServer, create_app, start_server
from .storage import SQLiteRepository

__all__ = ["BoardServer", "SQLiteRepository", "Settings", "create_app", "get_settings", "start_server"]
