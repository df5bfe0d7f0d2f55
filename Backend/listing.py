"""
Filter / sort / paginate helpers for list views.

Rows are plain dicts (serialized schemas). Related records are nested dicts and
can be addressed with dotted field names such as ``players.full_name``.
"""

import math
from typing import Any, Iterable, Optional


def get_field(row: dict, field: str) -> Any:
    value: Any = row
    for part in field.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _sort_key(value: Any):
    if value is None:
        return (0, "")
    if isinstance(value, (bool, int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value.casefold())
    return (3, str(value))


def filter_rows(rows: Iterable[dict], search: str = "", search_fields: Iterable[str] = (),
                equals: Optional[dict] = None) -> list[dict]:
    """Keep rows matching every equality filter and, if given, the search text.

    Equality filters whose value is ``None`` or ``"all"`` are ignored. The search
    is a case-insensitive substring match against any of ``search_fields``.
    """
    needle = (search or "").strip().casefold()
    active = {k: v for k, v in (equals or {}).items() if v is not None and v != "all"}
    search_fields = list(search_fields)

    result = []
    for row in rows:
        if any(get_field(row, field) != value for field, value in active.items()):
            continue
        if needle and not any(
            needle in str(get_field(row, field) or "").casefold() for field in search_fields
        ):
            continue
        result.append(row)
    return result


def sort_rows(rows: Iterable[dict], field: Optional[str], order: str = "asc") -> list[dict]:
    """Stable sort by one field; missing values sort lowest."""
    rows = list(rows)
    if not field:
        return rows
    return sorted(rows, key=lambda row: _sort_key(get_field(row, field)), reverse=order == "desc")


def paginate(rows: list[dict], page: int = 1, per_page: int = 10) -> dict:
    total = len(rows)
    total_pages = max(1, math.ceil(total / per_page))
    page = min(max(1, page), total_pages)
    start = (page - 1) * per_page
    return {
        "items": rows[start:start + per_page],
        "page": page,
        "per_page": per_page,
        "total": total,
        "total_pages": total_pages,
    }
