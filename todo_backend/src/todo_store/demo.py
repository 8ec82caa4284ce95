"""
Demonstration of the TodoRepository against a live MongoDB.

Usage:
    DB_URI=mongodb://localhost:27017 DATABASE_NAME=todo_demo python -m todo_store.demo
"""
from __future__ import annotations

import asyncio
import logging
from typing import List

from .connection import ConnectionManager
from .logging_config import setup_logging
from .models import TodoItem
from .repositories import Repository, build_repository
from .settings import get_settings

logger = logging.getLogger(__name__)

SAMPLE_TODOS = [
    {"description": "Learn Python", "tags": ["programming", "python"], "deadline": "2023-12-31"},
    {"description": "Build a Todo App", "tags": ["project", "practice"], "deadline": "2024-01-15"},
    {"description": "Write Unit Tests", "tags": ["testing", "quality"], "deadline": "2024-02-01"},
]


async def demo_insert(repo: Repository) -> None:
    for raw in SAMPLE_TODOS:
        # id 0: generated by the repository
        item = await repo.insert(TodoItem(id=0, **raw))
        logger.info("Insert result", extra={"todo": item.model_dump(mode="json")})


async def demo_list(repo: Repository) -> List[TodoItem]:
    todos = await repo.list_all()
    logger.info("All todos", extra={"todos": [t.model_dump(mode="json") for t in todos]})
    return todos


async def demo(manager: ConnectionManager) -> None:
    """Insert, list, find, update and remove, always disconnecting at the end."""
    repo = build_repository(manager)
    try:
        await manager.connect()
        logger.info("=== Demonstration of TodoRepository methods ===")

        await demo_insert(repo)
        todos = await demo_list(repo)
        if not todos:
            return

        first = todos[0]
        found = await repo.find_by_id(first.id)
        logger.info("Found todo by id", extra={"todo": found.model_dump(mode="json") if found else None})

        updated = await repo.update(first.model_copy(update={"description": "Learn Advanced Python"}))
        logger.info("Update result", extra={"todo": updated.model_dump(mode="json")})

        removed = await repo.remove_by_id(first.id)
        logger.info("Remove result", extra={"todo_id": first.id, "removed": removed})
    finally:
        await manager.disconnect()


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)
    asyncio.run(demo(ConnectionManager(settings)))


if __name__ == "__main__":
    main()
