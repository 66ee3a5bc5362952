"""
HTTP client for the listing endpoints.

Turns ``GET {base_url}/{resource}?page=&limit=[&shard=]`` responses into
:class:`~shiftlib.pagination.Page` objects for the traversal engine. Every
failure (network error, non-2xx status, body that is not a JSON object) is
raised as TransportFailure.
"""
import logging
from typing import Optional

import httpx

from .errors import TransportFailure
from .pagination import Page

_logger = logging.getLogger('shiftlib.client')


class ListingClient:
    def __init__(self, base_url: str, http_client: Optional[httpx.Client] = None,
                 timeout: float = 10.0):
        self.base_url = base_url.rstrip('/')
        self._owns_client = http_client is None
        self._http = http_client if http_client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def fetch_page(self, resource: str, page: int, limit: int,
                   shard: Optional[int] = None) -> Page:
        url = f"{self.base_url}/{resource}"
        params = {'page': page, 'limit': limit}
        if shard is not None:
            params['shard'] = shard
        _logger.debug("GET %s params=%s", url, params)
        try:
            res = self._http.get(url, params=params)
            res.raise_for_status()
            body = res.json()
        except httpx.HTTPStatusError as e:
            raise TransportFailure(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportFailure(url, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise TransportFailure(url, "response is not valid JSON") from e

        if not isinstance(body, dict):
            raise TransportFailure(url, "response body is not an object")
        links = body.get('links') or {}
        if not isinstance(links, dict):
            raise TransportFailure(url, "'links' is not an object")
        # A missing or non-list data field counts as an empty page
        items = body.get('data')
        if not isinstance(items, list):
            items = []
        return Page(items=items, has_next=bool(links.get('next')))

    def page_fetcher(self, resource: str):
        """Return ``fetch(page, limit)`` for a flat resource."""
        def fetch(page: int, limit: int) -> Page:
            return self.fetch_page(resource, page, limit)
        return fetch

    def sharded_page_fetcher(self, resource: str):
        """Return ``fetch(page, limit, shard)`` for a sharded resource."""
        def fetch(page: int, limit: int, shard: int) -> Page:
            return self.fetch_page(resource, page, limit, shard=shard)
        return fetch
