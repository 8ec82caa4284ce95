"""
Todo store package.

A guarded MongoDB connection lifecycle (``ConnectionManager``) and a CRUD
repository for Todo items (``TodoRepository``). The FastAPI app lives in
``todo_store.main`` and is not imported here so the data-access layer can
be used without the web stack.
"""

from .connection import ConnectionManager, ConnectionState
from .errors import (
    ConfigurationError,
    DatabaseError,
    DuplicateTodoError,
    NotConnectedError,
    StoreConnectionError,
    TodoNotFoundError,
)
from .models import TodoItem
from .repositories import CounterPolicy, MaxPlusOnePolicy, TodoRepository, build_repository
from .settings import Settings, get_settings

__all__ = [
    "ConfigurationError",
    "ConnectionManager",
    "ConnectionState",
    "CounterPolicy",
    "DatabaseError",
    "DuplicateTodoError",
    "MaxPlusOnePolicy",
    "NotConnectedError",
    "Settings",
    "StoreConnectionError",
    "TodoItem",
    "TodoNotFoundError",
    "TodoRepository",
    "build_repository",
    "get_settings",
]
