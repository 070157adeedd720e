"""Tests for offset pagination and id partitioning."""

import pytest

from payouts_sync.connectors import MiraklApiError, Page
from payouts_sync.extraction import fetch_all_pages, partition


class FakeListing:
    """Serves ``total`` numbered items, optionally lying about the total."""

    def __init__(self, total, page_size=100, reported_total=None, fail_at_offset=None):
        self.items = list(range(total))
        self.page_size = page_size
        self.reported_total = total if reported_total is None else reported_total
        self.fail_at_offset = fail_at_offset
        self.offsets = []

    def __call__(self, offset):
        self.offsets.append(offset)
        if offset == self.fail_at_offset:
            raise MiraklApiError("boom", status_code=500)
        return Page(items=self.items[offset:offset + self.page_size], total_count=self.reported_total)


class TestFetchAllPages:
    """Tests for the page loop."""

    def test_single_page(self):
        listing = FakeListing(42)
        assert fetch_all_pages(listing) == list(range(42))
        assert listing.offsets == [0]

    def test_walks_offsets_in_page_size_steps(self):
        listing = FakeListing(250)
        items = fetch_all_pages(listing)
        assert items == list(range(250))
        assert listing.offsets == [0, 100, 200]

    def test_exact_multiple_of_page_size_stops_without_extra_call(self):
        listing = FakeListing(200)
        fetch_all_pages(listing)
        assert listing.offsets == [0, 100]

    def test_empty_listing_makes_one_call(self):
        listing = FakeListing(0)
        assert fetch_all_pages(listing) == []
        assert listing.offsets == [0]

    def test_empty_page_before_total_stops(self):
        """A server reporting more items than it serves must not loop forever."""
        listing = FakeListing(150, reported_total=500)
        items = fetch_all_pages(listing)
        assert len(items) == 150
        assert listing.offsets == [0, 100, 200]

    def test_error_propagates(self):
        listing = FakeListing(250, fail_at_offset=100)
        with pytest.raises(MiraklApiError):
            fetch_all_pages(listing)

    def test_custom_page_size(self):
        listing = FakeListing(25, page_size=10)
        assert fetch_all_pages(listing, page_size=10) == list(range(25))
        assert listing.offsets == [0, 10, 20]


class TestPartition:
    """Tests for id batching."""

    def test_chunks_of_at_most_size(self):
        batches = partition([str(i) for i in range(250)])
        assert [len(b) for b in batches] == [100, 100, 50]

    def test_duplicates_removed_preserving_order(self):
        assert partition(["b", "a", "b", "c", "a"], size=2) == [["b", "a"], ["c"]]

    def test_empty_input(self):
        assert partition([]) == []

    def test_every_id_in_exactly_one_batch(self):
        ids = [str(i) for i in range(205)]
        batches = partition(ids)
        flattened = [i for batch in batches for i in batch]
        assert sorted(flattened) == sorted(ids)
        assert len(flattened) == len(set(flattened))

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            partition(["1"], size=0)
