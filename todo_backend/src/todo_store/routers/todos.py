from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Path, Request, status

from ..errors import DuplicateTodoError
from ..models import TodoItem
from ..repositories import Repository
from ..schemas import TodoCreate, TodoUpdate

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)


def get_repository(request: Request) -> Repository:
    """
    Dependency returning the repository built during application startup.
    """
    return request.app.state.repository


# Negative ids never exist; reject them as request validation errors
TodoId = Annotated[int, Path(ge=0, description="Todo identifier")]


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoItem,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item with a generated identifier and return it.",
    responses={
        201: {"description": "Todo created successfully"},
        409: {"description": "Identifier already in use"},
    },
)
async def create_todo(payload: TodoCreate, repo: Repository = Depends(get_repository)) -> TodoItem:
    """
    Create a new Todo.
    """
    try:
        return await repo.insert(payload.to_item())
    except DuplicateTodoError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TodoItem],
    summary="List Todos",
    description="List every Todo item in store order.",
)
async def list_todos(repo: Repository = Depends(get_repository)) -> List[TodoItem]:
    return await repo.list_all()


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoItem,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
async def get_todo(todo_id: TodoId, repo: Repository = Depends(get_repository)) -> TodoItem:
    """
    Retrieve a single Todo item by its ID.
    """
    item = await repo.find_by_id(todo_id)
    if item is None:
        raise _not_found()
    return item


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoItem,
    summary="Replace Todo",
    description="Replace every field of an existing Todo item. Never creates a new item.",
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found"},
    },
)
async def put_todo(todo_id: TodoId, payload: TodoCreate, repo: Repository = Depends(get_repository)) -> TodoItem:
    # TodoNotFoundError is mapped to 404 by the application handler
    return await repo.update(payload.to_item(todo_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoItem,
    summary="Update Todo",
    description="Partially update fields of a Todo item.",
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found"},
    },
)
async def patch_todo(todo_id: TodoId, payload: TodoUpdate, repo: Repository = Depends(get_repository)) -> TodoItem:
    """
    Partial update of a Todo item.
    """
    current = await repo.find_by_id(todo_id)
    if current is None:
        raise _not_found()
    return await repo.update(payload.apply_to(current))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        204: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
    },
)
async def delete_todo(todo_id: TodoId, repo: Repository = Depends(get_repository)) -> None:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    if not await repo.remove_by_id(todo_id):
        raise _not_found()
    return None
