"""Tests for the flat and sharded traversal of paginated listings."""
import pytest

from conftest import FakeSource, FakeShardedSource, items
from shiftlib.errors import TransportFailure
from shiftlib.pagination import Page
from shiftlib.traversal import iter_pages, iter_shards, traverse_flat, traverse_sharded


class TestTraverseFlat:
    def test_two_pages_ten_plus_three(self):
        """Page 1: 10 items + next, page 2: 3 items, no next → 13 items, 2 fetches."""
        source = FakeSource([(items(1, 10), True), (items(11, 3), False)])
        result = traverse_flat(source, 10)
        assert len(result) == 13
        assert [r['id'] for r in result] == list(range(1, 14))
        assert source.calls == [(1, 10), (2, 10)]

    def test_stops_on_missing_next_link(self):
        source = FakeSource([(items(1, 2), False), (items(3, 2), True)])
        assert [r['id'] for r in traverse_flat(source, 2)] == [1, 2]
        assert len(source.calls) == 1

    def test_stops_on_empty_page_even_with_next_link(self):
        """A source claiming hasNext on an empty page must not loop forever."""
        source = FakeSource([(items(1, 2), True), ([], True), (items(3, 2), False)])
        assert [r['id'] for r in traverse_flat(source, 2)] == [1, 2]
        assert source.calls == [(1, 2), (2, 2)]

    def test_empty_collection(self):
        source = FakeSource([([], False)])
        assert traverse_flat(source, 10) == []
        assert source.calls == [(1, 10)]

    def test_page_index_increases_by_one(self):
        source = FakeSource([(items(i * 3 + 1, 3), True) for i in range(4)] + [(items(13, 1), False)])
        traverse_flat(source, 3)
        assert [c[0] for c in source.calls] == [1, 2, 3, 4, 5]

    def test_short_page_with_next_link_keeps_going(self):
        """Page size mismatch changes boundaries, never the collected set."""
        source = FakeSource([(items(1, 4), True), (items(5, 7), True), (items(12, 1), False)])
        assert [r['id'] for r in traverse_flat(source, 10)] == list(range(1, 13))

    def test_preserves_in_page_order(self):
        source = FakeSource([([{'id': 3}, {'id': 1}], True), ([{'id': 2}], False)])
        assert [r['id'] for r in traverse_flat(source, 2)] == [3, 1, 2]

    def test_fetch_failure_aborts_traversal(self):
        calls = []

        def fetch(page, limit):
            calls.append(page)
            if page == 2:
                raise TransportFailure('http://x/shifts', 'HTTP 500')
            return Page(items=items(1, 2), has_next=True)

        with pytest.raises(TransportFailure):
            traverse_flat(fetch, 2)
        assert calls == [1, 2]

    @pytest.mark.parametrize("page_size", [0, -1, None, 2.5])
    def test_invalid_page_size_rejected(self, page_size):
        with pytest.raises(ValueError):
            traverse_flat(FakeSource([]), page_size)

    def test_iter_pages_is_lazy(self):
        source = FakeSource([(items(1, 2), True), (items(3, 2), True), (items(5, 2), False)])
        batches = iter_pages(source, 2)
        assert source.calls == []
        assert [r['id'] for r in next(batches)] == [1, 2]
        assert source.calls == [(1, 2)]
        assert [len(b) for b in batches] == [2, 2]
        assert list(batches) == []


class TestTraverseSharded:
    def test_shard_zero_then_empty_shard_one(self):
        """Shard 0 has items on pages 1-2 then empty page 3; shard 1 is empty."""
        source = FakeShardedSource({
            0: [(items(1, 2), True), (items(3, 2), True), ([], False)],
            1: [([], False)],
            2: [(items(100, 2), False)],
        })
        result = traverse_sharded(source, 2)
        assert [r['id'] for r in result] == [1, 2, 3, 4]
        assert source.calls == [(0, 1, 2), (0, 2, 2), (0, 3, 2), (1, 1, 2)]
        assert all(shard != 2 for shard, _, _ in source.calls)

    def test_concatenates_shards_in_order(self):
        source = FakeShardedSource({
            0: [(items(1, 2), True), (items(3, 1), False)],
            1: [(items(10, 2), False)],
            2: [(items(20, 2), True), (items(22, 2), False)],
        })
        result = traverse_sharded(source, 2)
        assert [r['id'] for r in result] == [1, 2, 3, 10, 11, 20, 21, 22, 23]
        probed = sorted({shard for shard, _, _ in source.calls})
        assert probed == [0, 1, 2, 3]

    def test_every_shard_starts_at_page_one(self):
        source = FakeShardedSource({
            0: [(items(1, 1), True), (items(2, 1), False)],
            1: [(items(3, 1), True), (items(4, 1), False)],
        })
        traverse_sharded(source, 1)
        first_pages = [(shard, page) for shard, page, _ in source.calls if page == 1]
        assert first_pages == [(0, 1), (1, 1), (2, 1)]

    def test_gap_stops_scan(self):
        """Items beyond an empty shard are never collected (known limitation)."""
        source = FakeShardedSource({
            0: [(items(1, 2), False)],
            1: [([], False)],
            2: [(items(50, 5), False)],
        })
        result = traverse_sharded(source, 5)
        assert [r['id'] for r in result] == [1, 2]
        assert [c[0] for c in source.calls] == [0, 1]

    def test_empty_first_shard_yields_nothing(self):
        source = FakeShardedSource({0: [([], True)], 1: [(items(1, 1), False)]})
        assert traverse_sharded(source, 10) == []
        assert source.calls == [(0, 1, 10)]

    def test_iter_shards_yields_one_list_per_shard(self):
        source = FakeShardedSource({
            0: [(items(1, 2), False)],
            1: [(items(3, 1), False)],
        })
        assert [[r['id'] for r in s] for s in iter_shards(source, 2)] == [[1, 2], [3]]

    def test_failure_in_later_shard_aborts(self):
        def fetch(page, limit, shard):
            if shard == 1:
                raise TransportFailure('http://x/workplaces', 'timeout')
            return Page(items=items(1, 1), has_next=False)

        with pytest.raises(TransportFailure):
            traverse_sharded(fetch, 10)
