from flask import request
from sqlalchemy import or_

DEFAULT_PER_PAGE = 50
MAX_PER_PAGE = 200


def page_args():
    """Reads ``page``, ``per_page`` and ``search`` from the query string."""
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get("per_page", DEFAULT_PER_PAGE, type=int)
    search_term = (request.args.get("search") or "").strip() or None
    return page, per_page, search_term


def search_and_paginate(query, model, search_term, search_columns, page=1, per_page=DEFAULT_PER_PAGE):
    """
    Narrows ``query`` to rows where any of ``search_columns`` contains
    ``search_term`` (case-insensitive), then returns one page of the result.

    Out-of-range ``page``/``per_page`` values are clamped rather than rejected;
    ``per_page`` never exceeds MAX_PER_PAGE.
    """
    if search_term:
        query = query.filter(or_(
            *(getattr(model, column).ilike(f"%{search_term}%") for column in search_columns)
        ))

    page = max(page or 1, 1)
    per_page = min(max(per_page or DEFAULT_PER_PAGE, 1), MAX_PER_PAGE)
    return query.paginate(page=page, per_page=per_page, error_out=False)


def pagination_meta(paginated):
    return {
        "total": paginated.total,
        "page": paginated.page,
        "pages": paginated.pages,
        "per_page": paginated.per_page,
    }
