"""
Request validation for the todo endpoints.

Each validator returns a tagged result: ``Valid`` carrying the normalized value or
``Invalid`` carrying per-field errors. Validators never raise on bad input, so
handlers branch on the result before touching the store. The rules themselves
are expressed with the pydantic models in ``schemas``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar, Generic, List, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .schemas import SQLITE_MAX_INT, ListParams, TodoCreate, TodoUpdate

T = TypeVar("T")

_ID_ADAPTER: TypeAdapter[int] = TypeAdapter(Annotated[int, Field(gt=0, le=SQLITE_MAX_INT)])


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Invalid:
    errors: List[FieldError] = field(default_factory=list)
    ok: ClassVar[bool] = False


ValidationResult = Union[Valid[T], Invalid]


@dataclass(frozen=True)
class ListQuery:
    """
    Normalized query parameters for listing and searching todos.
    """
    q: str = ""
    skip: int = 0
    limit: int = 10


def _field_errors(exc: ValidationError, default_field: str) -> List[FieldError]:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        errors.append(FieldError(field=loc or default_field, message=err["msg"]))
    return errors


# PUBLIC_INTERFACE
def validate_list_query(params: Mapping[str, Optional[str]]) -> ValidationResult[ListQuery]:
    """
    Validate `q`, `skip` and `limit` query parameters.

    Missing (None) values take their defaults. Present values must coerce: a
    non-numeric `skip` or `limit` is invalid rather than defaulted.
    """
    supplied = {k: v for k, v in params.items() if v is not None}
    try:
        parsed = ListParams.model_validate(supplied)
    except ValidationError as exc:
        return Invalid(_field_errors(exc, "query"))
    return Valid(ListQuery(q=parsed.q, skip=parsed.skip, limit=parsed.limit))


# PUBLIC_INTERFACE
def validate_todo_id(raw: Any) -> ValidationResult[int]:
    """Validate a todo id path segment: a positive integer SQLite can store."""
    try:
        todo_id = _ID_ADAPTER.validate_python(raw.strip() if isinstance(raw, str) else raw)
    except ValidationError as exc:
        return Invalid([FieldError(field="id", message=e["msg"]) for e in exc.errors()])
    return Valid(todo_id)


# PUBLIC_INTERFACE
def validate_todo_body(body: Any, partial: bool = False) -> ValidationResult[BaseModel]:
    """
    Validate a JSON request body.

    Args:
        body: Decoded JSON body.
        partial: When True every field is optional (TodoUpdate); otherwise title is
            required and status defaults to 'pending' (TodoCreate).

    Returns:
        Valid(TodoCreate | TodoUpdate) or Invalid with one FieldError per failing field.
    """
    if not isinstance(body, dict):
        return Invalid([FieldError(field="body", message="Input should be a JSON object")])
    model = TodoUpdate if partial else TodoCreate
    try:
        return Valid(model.model_validate(body))
    except ValidationError as exc:
        return Invalid(_field_errors(exc, "body"))
