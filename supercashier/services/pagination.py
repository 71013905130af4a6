# Overview: Shared list/pagination shape for service listings.

from __future__ import annotations

from typing import Callable


def paginate(base_query, page: int | None, per_page: int | None, serialize: Callable) -> dict:
    """
    Returns {"items", "count"} for the full result when page is None,
    otherwise one page plus "pagination" metadata (per_page default 20, max 100).
    """
    if page is None:
        rows = base_query.all()
        return {
            "items": [serialize(r) for r in rows],
            "count": len(rows),
        }

    per_page = max(1, min(per_page or 20, 100))
    page = max(page, 1)

    total = base_query.order_by(None).count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    rows = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [serialize(r) for r in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
