from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Sequence

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from .validation import FieldError

logger = logging.getLogger(__name__)

TODO_NOT_FOUND = "Todo not found"


class StoreError(Exception):
    """A store operation (open, query, execute, persist) failed or timed out."""


class RecordShapeError(StoreError):
    """A row read from the store does not have the todo column set."""


# PUBLIC_INTERFACE
def validation_error_response(
    errors: Sequence["FieldError"],
    status_code: int = status.HTTP_400_BAD_REQUEST,
    message: str = "Request validation failed",
) -> JSONResponse:
    """
    Build the JSON response returned when a request fails validation.

    Response format:
        {
            "error": "ValidationError",
            "message": "...",
            "details": [{"field": "...", "message": "..."}, ...]
        }
    """
    return JSONResponse(
        status_code=status_code,
        content={
            "error": "ValidationError",
            "message": message,
            "details": [{"field": e.field, "message": e.message} for e in errors],
        },
    )


# PUBLIC_INTERFACE
def not_found() -> HTTPException:
    """Return the 404 raised when no todo exists for an id."""
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TODO_NOT_FOUND)


# PUBLIC_INTERFACE
@contextmanager
def store_guard(operation: str) -> Iterator[None]:
    """
    Turn a StoreError raised inside the block into a 500 with a generic message.
    The StoreError is logged with its traceback and never sent to the client.
    """
    try:
        yield
    except StoreError as exc:
        logger.error("Store failure during %s: %s", operation, exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from exc
