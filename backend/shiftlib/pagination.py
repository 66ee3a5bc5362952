"""
Page cursor contract shared by the listing endpoints and the traversal engine.

A listing response carries the items of one page under ``data`` and a
``links.next`` entry whose presence means another page exists. Requests name
a 1-based ``page``, a fixed ``limit`` and, for sharded sources, a 0-based
``shard``. Continuation is driven by the next link, never by a total count.
"""
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .types import ItemList, ListingItem

# Page size agreed between the listing endpoints and the reporter
PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Workplaces per shard when the listing is partitioned
DEFAULT_SHARD_SIZE = 100


@dataclass(frozen=True)
class PageRequest:
    """One page of a (possibly sharded) collection."""
    num: int = 1
    size: int = PAGE_SIZE
    shard: Optional[int] = None

    def __post_init__(self):
        if self.num < 1:
            raise ValueError(f"page must be >= 1, got {self.num}")
        if not (1 <= self.size <= MAX_PAGE_SIZE):
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}, got {self.size}")
        if self.shard is not None and self.shard < 0:
            raise ValueError(f"shard must be >= 0, got {self.shard}")

    @property
    def offset(self) -> int:
        return (self.num - 1) * self.size


@dataclass(frozen=True)
class Page:
    """Items of one page plus whether a following page exists."""
    items: ItemList = field(default_factory=list)
    has_next: bool = False

    def __len__(self) -> int:
        return len(self.items)


def shard_slice(records: Sequence[ListingItem], shard: int, shard_size: int) -> list:
    """Return the partition of *records* that belongs to *shard*.

    Shards are contiguous blocks of ``shard_size`` records in id order, so a
    shard index past the last block yields an empty list.
    """
    if shard_size < 1:
        raise ValueError(f"shard_size must be >= 1, got {shard_size}")
    start = shard * shard_size
    return list(records[start:start + shard_size])


def paginate(records: Sequence[ListingItem], request: PageRequest) -> tuple[list, Optional[int]]:
    """Cut one page out of *records*.

    Returns ``(items, next_page)`` where ``next_page`` is None on the last page.
    """
    start = request.offset
    items = list(records[start:start + request.size])
    next_page = request.num + 1 if start + request.size < len(records) else None
    return items, next_page
