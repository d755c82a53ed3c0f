"""Property-based tests for ProcessedLedger and HaikuStore."""

from conftest import make_item
from hypothesis import given
from hypothesis import strategies as st

from haiku_feed.dedup import ProcessedLedger
from haiku_feed.models import Haiku
from haiku_feed.store import HaikuStore


class TestProcessedLedgerProperties:
    """Property-based tests for processed-identity tracking."""

    @given(st.lists(st.text(min_size=1, max_size=50), max_size=50))
    def test_marked_ids_are_remembered_property(self, guids):
        ledger = ProcessedLedger()

        for guid in guids:
            ledger.mark_as_processed(guid)

        assert all(ledger.has_been_processed(guid) for guid in guids)
        assert len(ledger) == len(set(guids))

    @given(
        st.lists(st.text(min_size=1, max_size=50), max_size=30),
        st.text(min_size=1, max_size=50),
    )
    def test_unmarked_id_is_not_processed_property(self, guids, other):
        ledger = ProcessedLedger()
        for guid in guids:
            ledger.mark_as_processed(guid)

        assert ledger.has_been_processed(other) == (other in guids)

    @given(st.lists(st.text(min_size=1, max_size=50), min_size=1, max_size=30))
    def test_reset_forgets_everything_property(self, guids):
        ledger = ProcessedLedger()
        for guid in guids:
            ledger.mark_as_processed(guid)

        ledger.reset()

        assert len(ledger) == 0
        assert not any(ledger.has_been_processed(guid) for guid in guids)


class TestHaikuStoreProperties:
    """Property-based tests for the haiku store."""

    @given(
        st.lists(
            st.tuples(st.text(min_size=1, max_size=20), st.integers(0, 10_000)),
            max_size=30,
            unique_by=lambda pair: pair[0],
        )
    )
    def test_get_all_sorted_newest_first_property(self, entries):
        store = HaikuStore()
        for guid, minutes_ago in entries:
            store.add(Haiku.from_item(make_item(guid, minutes_ago=minutes_ago), "text"))

        timestamps = [haiku.timestamp for haiku in store.get_all()]

        assert timestamps == sorted(timestamps, reverse=True)
        assert len(timestamps) == len(entries)

    @given(st.lists(st.text(min_size=1, max_size=20), min_size=1, max_size=20, unique=True))
    def test_clear_empties_store_and_ledger_property(self, guids):
        store = HaikuStore()
        for guid in guids:
            store.add(Haiku.from_item(make_item(guid), "text"))

        assert all(store.ledger.has_been_processed(guid) for guid in guids)

        store.clear()

        assert len(store) == 0
        assert store.get_all() == []
        assert not any(store.ledger.has_been_processed(guid) for guid in guids)
