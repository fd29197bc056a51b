from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Literal, Mapping, Optional, Tuple, TypedDict

from .errors import RecordShapeError

TodoStatus = Literal["pending", "completed"]

TODO_STATUSES: Tuple[str, ...] = ("pending", "completed")
TODO_FIELDS: Tuple[str, ...] = ("id", "title", "description", "status")


@dataclass(frozen=True)
class ResultTable:
    """
    One table of a query result: ordered column names and positional row tuples.
    """
    columns: List[str]
    values: List[Tuple[Any, ...]] = field(default_factory=list)


# Shape returned by Store.query and consumed by the row mapper
ResultSet = List[ResultTable]


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A Todo row as read from the store.

    Fields:
    - id: Unique integer identifier assigned by the store
    - title: Short title (1..100 chars)
    - description: Optional detailed description
    - status: 'pending' or 'completed'
    """

    id: int
    title: str
    description: Optional[str]
    status: TodoStatus


# PUBLIC_INTERFACE
def entity_from_record(record: Mapping[str, Any]) -> TodoEntity:
    """
    Build a TodoEntity from a mapped row, rejecting rows whose columns do not match
    the todo field set exactly.

    Raises:
        RecordShapeError: if columns are missing or unexpected, or status is unknown.
    """
    columns = set(record)
    unexpected = sorted(columns - set(TODO_FIELDS))
    missing = sorted(set(TODO_FIELDS) - columns)
    if unexpected or missing:
        raise RecordShapeError(
            f"todo row has unexpected columns {unexpected} and missing columns {missing}"
        )
    if record["status"] not in TODO_STATUSES:
        raise RecordShapeError(f"todo row has unknown status {record['status']!r}")

    return {
        "id": int(record["id"]),
        "title": str(record["title"]),
        "description": record["description"],
        "status": record["status"],
    }
