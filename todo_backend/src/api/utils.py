from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .models import ResultTable


# PUBLIC_INTERFACE
def to_object(result_set: Sequence[ResultTable]) -> Optional[Dict[str, Any]]:
    """
    Map the first row of the first table of a result set to a column -> value dict.

    Args:
        result_set: Tables returned by Store.query. May be an empty sequence.

    Returns:
        The record, or None when there is no table or the first table has no rows.
    """
    if not result_set or not result_set[0].values:
        return None
    table = result_set[0]
    return dict(zip(table.columns, table.values[0]))


# PUBLIC_INTERFACE
def to_array(result_set: Sequence[ResultTable]) -> List[Dict[str, Any]]:
    """
    Map every row of the first table of a result set to a column -> value dict.
    Returns an empty list for an empty result set or a table without rows.
    """
    if not result_set:
        return []
    columns = result_set[0].columns
    return [dict(zip(columns, row)) for row in result_set[0].values]
