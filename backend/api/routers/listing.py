"""Helpers for building paginated listing responses."""
from typing import Optional

from fastapi import HTTPException, Request

from shiftlib.pagination import PageRequest


def page_request(page: int, limit: int, shard: Optional[int] = None) -> PageRequest:
    try:
        return PageRequest(num=page, size=limit, shard=shard)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def paginated(request: Request, data: list, next_page: Optional[int]) -> dict:
    """Wrap one page as ``{"data": [...], "links": {"next": url}}``.

    ``links.next`` is omitted on the last page. Other query parameters
    (limit, shard) are carried over into the next link.
    """
    links = {}
    if next_page is not None:
        links['next'] = str(request.url.include_query_params(page=next_page))
    return {"data": data, "links": links}
