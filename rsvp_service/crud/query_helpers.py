# rsvp_service/crud/query_helpers.py

# =================================================================================
# 🧮 Query helpers shared by the guest and RSVP directories
# - Case-insensitive exact name match (soft join key).
# - Case-insensitive substring search over first/last name.
# - Allow-listed sorting and fixed-size pagination.
# =================================================================================

from typing import Iterable, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query

PAGE_SIZE = 20  # Fixed admin page size.


def norm_name(value: Optional[str]) -> str:
    """Trim + lower-case; the comparison key for names."""
    return (value or "").strip().lower()


def name_matches(model, first_name: str, last_name: str):
    """SQL clause: (first_name, last_name) equal to the given pair, ignoring case."""
    return (
        (func.lower(model.first_name) == norm_name(first_name))
        & (func.lower(model.last_name) == norm_name(last_name))
    )


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def apply_search(query: Query, model, search: Optional[str]) -> Query:
    """Substring search over first/last name. Blank search returns the query as is."""
    term = (search or "").strip()
    if not term:
        return query
    pattern = _like_pattern(term)
    return query.filter(
        or_(
            model.first_name.ilike(pattern, escape="\\"),
            model.last_name.ilike(pattern, escape="\\"),
        )
    )


def apply_sort(
    query: Query,
    model,
    sort: Optional[str],
    direction: Optional[str],
    allowed: Iterable[str],
    default: str = "created_at",
) -> Query:
    """Orders by an allow-listed column; unknown columns fall back to `default desc`."""
    if sort not in set(allowed):
        sort, direction = default, "desc"
    column = getattr(model, sort)
    ordered = column.asc() if direction == "asc" else column.desc()
    # id as tie-breaker keeps page boundaries stable between requests.
    return query.order_by(ordered, model.id.asc())


def paginate(query: Query, page: int, page_size: int = PAGE_SIZE) -> Query:
    page = max(0, int(page or 0))
    return query.offset(page * page_size).limit(page_size)
