"""
Traversal of cursor-paginated collections.

Two shapes are supported:

  traverse_flat(fetch_page, page_size)     – page 1, 2, 3 ... until a page is
                                             empty or has no next link
  traverse_sharded(fetch_page, page_size)  – the flat walk for shard 0, 1, 2 ...
                                             until a shard's first page is empty

Fetches are strictly sequential: whether page N+1 is needed is only known
once page N has arrived. Errors raised by ``fetch_page`` (normally
:class:`~shiftlib.errors.TransportFailure`) propagate unchanged and abort the
whole traversal; nothing is retried and no partial result is returned.

Known limitation: a sharded scan stops at the first empty shard. An empty
shard followed by a non-empty one is indistinguishable from the end of the
collection, so items beyond such a gap are never collected.
"""
import logging
from typing import Callable, Iterator

from .pagination import Page
from .types import ItemList

_logger = logging.getLogger('shiftlib.traversal')

# fetch_page(page, limit) -> Page
PageFetcher = Callable[[int, int], Page]
# fetch_page(page, limit, shard) -> Page
ShardedPageFetcher = Callable[[int, int, int], Page]


def _check_page_size(page_size: int) -> None:
    if not isinstance(page_size, int) or page_size < 1:
        raise ValueError(f"page_size must be a positive integer, got {page_size!r}")


def iter_pages(fetch_page: PageFetcher, page_size: int) -> Iterator[ItemList]:
    """Yield the item batches of a flat collection, page by page.

    The generator stops after the first page that is empty (that page is not
    yielded) or that carries no next link (that page is yielded). It cannot
    be restarted.
    """
    _check_page_size(page_size)
    page_num = 1
    while True:
        page = fetch_page(page_num, page_size)
        _logger.debug("page=%d items=%d has_next=%s", page_num, len(page.items), page.has_next)
        if not page.items:
            return
        yield page.items
        if not page.has_next:
            return
        page_num += 1


def traverse_flat(fetch_page: PageFetcher, page_size: int) -> ItemList:
    """Collect every item of a flat collection in arrival order."""
    items: ItemList = []
    for batch in iter_pages(fetch_page, page_size):
        items.extend(batch)
    return items


def iter_shards(fetch_page: ShardedPageFetcher, page_size: int) -> Iterator[ItemList]:
    """Yield the complete item list of each shard, starting at shard 0.

    A shard whose first page is empty ends the scan; later shard indices are
    never probed.
    """
    _check_page_size(page_size)
    shard = 0
    while True:
        def _fetch_shard_page(page: int, limit: int, _shard: int = shard) -> Page:
            return fetch_page(page, limit, _shard)

        shard_items: ItemList = []
        for batch in iter_pages(_fetch_shard_page, page_size):
            shard_items.extend(batch)
        if not shard_items:
            _logger.debug("shard=%d is empty, scan complete", shard)
            return
        _logger.debug("shard=%d items=%d", shard, len(shard_items))
        yield shard_items
        shard += 1


def traverse_sharded(fetch_page: ShardedPageFetcher, page_size: int) -> ItemList:
    """Collect every item of a sharded collection.

    Order is shard index, then page, then position within the page.
    """
    items: ItemList = []
    for shard_items in iter_shards(fetch_page, page_size):
        items.extend(shard_items)
    return items
