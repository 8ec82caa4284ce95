from __future__ import annotations


class DatabaseError(Exception):
    """Base class for every error raised by the todo store."""


# PUBLIC_INTERFACE
class ConfigurationError(DatabaseError):
    """Required connection parameters are missing or blank."""


# PUBLIC_INTERFACE
class StoreConnectionError(DatabaseError):
    """The driver failed to open or close the connection."""


# PUBLIC_INTERFACE
class NotConnectedError(DatabaseError):
    """A store handle was requested while the manager is disconnected."""


# PUBLIC_INTERFACE
class TodoNotFoundError(DatabaseError):
    """No persisted Todo item carries the requested identifier."""

    def __init__(self, todo_id: int) -> None:
        super().__init__(f"Todo {todo_id} not found")
        self.todo_id = todo_id


# PUBLIC_INTERFACE
class DuplicateTodoError(DatabaseError):
    """An insert supplied an identifier that is already persisted."""

    def __init__(self, todo_id: int) -> None:
        super().__init__(f"Todo {todo_id} already exists")
        self.todo_id = todo_id
