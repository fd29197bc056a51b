from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ..db import Store, StoreProvider, get_store_provider
from ..errors import StoreError, not_found, store_guard, validation_error_response
from ..models import TodoEntity, entity_from_record
from ..schemas import DeleteConfirmation, TodoCreate, TodoOut, TodoUpdate
from ..utils import to_array, to_object
from ..validation import Invalid, validate_list_query, validate_todo_body, validate_todo_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["todos"])

SELECT_PAGE = "SELECT * FROM todos ORDER BY id LIMIT ? OFFSET ?"
SELECT_BY_ID = "SELECT * FROM todos WHERE id = ?"
SELECT_BY_TITLE = "SELECT * FROM todos WHERE title LIKE ? ORDER BY id"
INSERT = "INSERT INTO todos (title, description, status) VALUES (?, ?, ?)"
UPDATE = "UPDATE todos SET title = ?, description = ?, status = ? WHERE id = ?"
DELETE = "DELETE FROM todos WHERE id = ?"

_INVALID_ID = "Invalid todo id"

_ERROR_RESPONSES = {
    400: {"description": "Malformed id, query parameters or body"},
    404: {"description": "Todo not found"},
    500: {"description": "Store failure"},
}


def _fetch(store: Store, todo_id: int) -> Optional[TodoEntity]:
    record = to_object(store.query(SELECT_BY_ID, (todo_id,)))
    return None if record is None else entity_from_record(record)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TodoOut],
    summary="List Todos",
    description=(
        "List todos in id order.\n\n"
        "Query parameters:\n"
        "- skip: number of todos to skip (>=0, default 0)\n"
        "- limit: max number of todos to return (1..100, default 10)"
    ),
    responses={200: {"description": "List retrieved"}, 400: _ERROR_RESPONSES[400]},
)
def list_todos(
    skip: Optional[str] = Query(None, description="Number of todos to skip"),
    limit: Optional[str] = Query(None, description="Maximum number of todos to return"),
    provider: StoreProvider = Depends(get_store_provider),
):
    """
    Return one page of todos.
    """
    checked = validate_list_query({"skip": skip, "limit": limit})
    if isinstance(checked, Invalid):
        return validation_error_response(checked.errors, message="Invalid pagination parameters")

    page = checked.value
    with store_guard("list"):
        rows = provider.acquire().query(SELECT_PAGE, (page.limit, page.skip))
        return [entity_from_record(r) for r in to_array(rows)]


# PUBLIC_INTERFACE
@router.get(
    "/search/all",
    response_model=List[TodoOut],
    summary="Search Todos",
    description="Return every todo whose title contains `q` (SQLite LIKE semantics).",
    responses={200: {"description": "Search results"}},
)
def search_todos(
    q: Optional[str] = Query(None, description="Text searched in titles"),
    provider: StoreProvider = Depends(get_store_provider),
):
    """
    Substring search over titles. An empty `q` matches every todo.
    """
    checked = validate_list_query({"q": q})
    if isinstance(checked, Invalid):
        return validation_error_response(checked.errors, message="Invalid search parameters")

    with store_guard("search"):
        rows = provider.acquire().query(SELECT_BY_TITLE, (f"%{checked.value.q}%",))
        return [entity_from_record(r) for r in to_array(rows)]


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={200: {"description": "Todo found"}, **_ERROR_RESPONSES},
)
def get_todo(todo_id: str, provider: StoreProvider = Depends(get_store_provider)):
    """
    Retrieve a single Todo item by its ID.
    """
    checked = validate_todo_id(todo_id)
    if isinstance(checked, Invalid):
        return validation_error_response(checked.errors, message=_INVALID_ID)

    with store_guard("get"):
        todo = _fetch(provider.acquire(), checked.value)
    if todo is None:
        raise not_found()
    return todo


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the stored resource. `status` defaults to 'pending'.",
    responses={
        201: {"description": "Todo created"},
        422: {"description": "Missing or invalid fields"},
        500: _ERROR_RESPONSES[500],
    },
)
def create_todo(
    payload: Any = Body(None, examples=[TodoCreate.model_config["json_schema_extra"]["example"]]),
    provider: StoreProvider = Depends(get_store_provider),
):
    """
    Insert a todo, read the inserted row back and persist the store.
    """
    checked = validate_todo_body(payload)
    if isinstance(checked, Invalid):
        return validation_error_response(
            checked.errors,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message="Invalid todo",
        )

    data: TodoCreate = checked.value  # type: ignore[assignment]
    with store_guard("create"):
        store = provider.acquire()
        new_id = store.execute(INSERT, (data.title, data.description, data.status))
        created = _fetch(store, new_id) if new_id is not None else None
        if created is None:
            raise StoreError("inserted todo could not be read back")
        store.persist()
    logger.info("Created todo %s", created["id"])
    return created


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description="Partially update a Todo item. Fields left out keep their stored value.",
    responses={200: {"description": "Todo updated"}, **_ERROR_RESPONSES},
)
def update_todo(
    todo_id: str,
    payload: Any = Body(None, examples=[TodoUpdate.model_config["json_schema_extra"]["example"]]),
    provider: StoreProvider = Depends(get_store_provider),
):
    """
    Merge the supplied fields over the stored todo and persist the store.
    """
    checked_id = validate_todo_id(todo_id)
    if isinstance(checked_id, Invalid):
        return validation_error_response(checked_id.errors, message=_INVALID_ID)
    checked_body = validate_todo_body(payload, partial=True)
    if isinstance(checked_body, Invalid):
        return validation_error_response(checked_body.errors, message="Invalid todo")

    changes: TodoUpdate = checked_body.value  # type: ignore[assignment]
    with store_guard("update"):
        store = provider.acquire()
        existing = _fetch(store, checked_id.value)
        if existing is None:
            raise not_found()
        merged = {**existing, **changes.changes()}
        store.execute(
            UPDATE,
            (merged["title"], merged["description"], merged["status"], checked_id.value),
        )
        updated = _fetch(store, checked_id.value)
        if updated is None:
            raise StoreError(f"updated todo {checked_id.value} could not be read back")
        store.persist()
    logger.info("Updated todo %s", checked_id.value)
    return updated


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=DeleteConfirmation,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={200: {"description": "Todo deleted"}, **_ERROR_RESPONSES},
)
def delete_todo(todo_id: str, provider: StoreProvider = Depends(get_store_provider)):
    """
    Delete a Todo. Returns a confirmation message, 404 if not found.
    """
    checked = validate_todo_id(todo_id)
    if isinstance(checked, Invalid):
        return validation_error_response(checked.errors, message=_INVALID_ID)

    with store_guard("delete"):
        store = provider.acquire()
        if _fetch(store, checked.value) is None:
            raise not_found()
        store.execute(DELETE, (checked.value,))
        store.persist()
    logger.info("Deleted todo %s", checked.value)
    return {"detail": "Todo deleted"}
