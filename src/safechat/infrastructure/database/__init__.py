"""
Database infrastructure components.
"""

from safechat.infrastructure.database.connection import (
    Base,
    DatabaseManager,
    get_db_manager,
)
from safechat.infrastructure.database.chat_store import SqlAlchemyChatStore

__all__ = [
    "Base",
    "DatabaseManager",
    "get_db_manager",
    "SqlAlchemyChatStore",
]
