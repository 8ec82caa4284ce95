from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from pymongo import DESCENDING, ReturnDocument

from .connection import ConnectionManager
from .errors import DuplicateTodoError, TodoNotFoundError
from .models import TodoItem

logger = logging.getLogger(__name__)

# Store-assigned ``_id`` never leaves the repository
_NO_STORE_ID = {"_id": 0}


# PUBLIC_INTERFACE
class IdentifierPolicy(ABC):
    """Strategy that produces the identifier for an item inserted with id 0."""

    @abstractmethod
    async def next_id(self, database: Any, collection_name: str) -> int:
        """Return a fresh identifier for ``collection_name``."""


async def _current_max_id(collection: Any) -> int:
    doc = await collection.find_one({}, {"id": 1, "_id": 0}, sort=[("id", DESCENDING)])
    return int(doc["id"]) if doc else 0


class MaxPlusOnePolicy(IdentifierPolicy):
    """
    One greater than the largest identifier in the collection, or 1 when empty.

    Reads then writes, so two concurrent inserts can draw the same value.
    Use CounterPolicy when inserts run concurrently.
    """

    async def next_id(self, database: Any, collection_name: str) -> int:
        return await _current_max_id(database[collection_name]) + 1


class CounterPolicy(IdentifierPolicy):
    """
    Atomic per-collection sequence kept in a dedicated counters collection.

    The counter document is seeded from the current maximum identifier the
    first time it is used, so it can be switched on for an existing collection.
    """

    def __init__(self, counters_collection: str = "counters") -> None:
        self._counters_collection = counters_collection

    async def next_id(self, database: Any, collection_name: str) -> int:
        counters = database[self._counters_collection]
        if await counters.find_one({"_id": collection_name}) is None:
            seed = await _current_max_id(database[collection_name])
            # $setOnInsert keeps a concurrent seeder from resetting the sequence
            await counters.update_one(
                {"_id": collection_name},
                {"$setOnInsert": {"seq": seed}},
                upsert=True,
            )
        doc = await counters.find_one_and_update(
            {"_id": collection_name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    async def insert(self, item: TodoItem) -> TodoItem:
        """Persist an item, generating its identifier when it is 0. Return the stored item."""

    @abstractmethod
    async def list_all(self) -> List[TodoItem]:
        """Return every persisted item (empty list when there are none)."""

    @abstractmethod
    async def find_by_id(self, todo_id: int) -> Optional[TodoItem]:
        """Return the item with ``todo_id``, or None if not found."""

    @abstractmethod
    async def update(self, item: TodoItem) -> TodoItem:
        """Replace the stored item with the same id. Raise TodoNotFoundError if absent."""

    @abstractmethod
    async def remove_by_id(self, todo_id: int) -> bool:
        """Delete an item by id. Return True if deleted, False if not found."""


class TodoRepository(Repository):
    """
    MongoDB-backed repository for Todo items.

    Every call asks the ConnectionManager for the live database handle, so a
    disconnected manager surfaces NotConnectedError from any operation.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        collection_name: str = "todos",
        id_policy: Optional[IdentifierPolicy] = None,
    ) -> None:
        self._connection = connection
        self._collection_name = collection_name
        self._id_policy = id_policy or MaxPlusOnePolicy()

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def _collection(self) -> Any:
        return self._connection.get_store()[self._collection_name]

    async def insert(self, item: TodoItem) -> TodoItem:
        database = self._connection.get_store()
        collection = database[self._collection_name]

        if item.is_assigned:
            if await collection.find_one({"id": item.id}, _NO_STORE_ID) is not None:
                raise DuplicateTodoError(item.id)
            stored = item
        else:
            new_id = await self._id_policy.next_id(database, self._collection_name)
            stored = item.model_copy(update={"id": new_id})

        await collection.insert_one(stored.to_document())
        logger.debug("Inserted todo", extra={"todo_id": stored.id})
        return stored

    async def list_all(self) -> List[TodoItem]:
        cursor = self._collection().find({}, _NO_STORE_ID)
        docs = await cursor.to_list(length=None)
        return [TodoItem.from_document(d) for d in docs]

    async def find_by_id(self, todo_id: int) -> Optional[TodoItem]:
        doc = await self._collection().find_one({"id": todo_id}, _NO_STORE_ID)
        return TodoItem.from_document(doc) if doc else None

    async def update(self, item: TodoItem) -> TodoItem:
        result = await self._collection().replace_one({"id": item.id}, item.to_document(), upsert=False)
        if result.matched_count == 0:
            raise TodoNotFoundError(item.id)
        logger.debug("Updated todo", extra={"todo_id": item.id})
        return item

    async def remove_by_id(self, todo_id: int) -> bool:
        result = await self._collection().delete_one({"id": todo_id})
        removed = result.deleted_count > 0
        if removed:
            logger.debug("Removed todo", extra={"todo_id": todo_id})
        return removed


# PUBLIC_INTERFACE
def build_repository(connection: ConnectionManager) -> TodoRepository:
    """
    Factory returning a TodoRepository configured from the manager's settings.
    - max: MaxPlusOnePolicy
    - counter: CounterPolicy backed by settings.counters_collection
    """
    settings = connection.settings
    policy: IdentifierPolicy
    if settings.id_strategy == "counter":
        policy = CounterPolicy(settings.counters_collection)
    else:
        policy = MaxPlusOnePolicy()
    return TodoRepository(connection, settings.collection_name, policy)
