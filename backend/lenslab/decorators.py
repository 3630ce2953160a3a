# Overview: Request decorators and helpers shared by API routes.

from functools import wraps
from flask import request, g, current_app

from .validation import page_to_skip_take


ACTOR_HEADER = "X-User-Id"


def with_actor(f):
    """
    Expose the caller's identity as g.actor_id.

    The id comes from the X-User-Id header and is kept as an opaque string
    (None when the header is absent or blank). Authentication happens upstream.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = (request.headers.get(ACTOR_HEADER) or "").strip()
        g.actor_id = actor or None
        return f(*args, **kwargs)

    return decorated_function


def paging_args() -> tuple[int, int]:
    """Read page/limit from the query string and return (skip, take)."""
    return page_to_skip_take(
        request.args.get("page", type=int),
        request.args.get("limit", type=int),
        default_limit=current_app.config.get("DEFAULT_PAGE_LIMIT", 10),
        max_limit=current_app.config.get("MAX_PAGE_LIMIT", 500),
    )


def paging_meta(skip: int, take: int, total: int) -> dict:
    page = skip // take + 1
    total_pages = (total + take - 1) // take
    return {
        "page": page,
        "limit": take,
        "total_items": total,
        "total_pages": total_pages,
        "has_next_page": page < total_pages,
        "has_previous_page": page > 1,
    }
