"""MemoryStore transactions: undo-log rollback without copying the collections."""

import pytest

from bluebox_report.errors import StorageUnavailable
from bluebox_report.models import SummaryEntry
from bluebox_report.report import RentalReport
from bluebox_report.store import MemoryStore

from tests.conftest import summary_dict


class NoScanDict(dict):
    """A dict that fails the test if anything iterates or copies it."""

    def _scan(self, *args):
        raise AssertionError("full scan of the detail collection")

    __iter__ = keys = values = items = copy = _scan


@pytest.fixture
def large_store(make_record):
    store = MemoryStore()
    store.bulk_load_details(make_record("Drama") for _ in range(5000))
    RentalReport(store).rebuild()
    store._details = NoScanDict(store._details)
    return store


def test_add_and_remove_do_not_scan_details(large_store, make_record):
    report = RentalReport(large_store)

    row = report.add(make_record("Sports"))
    report.remove(row.detail_id)
    report.add(make_record("Drama"))

    assert large_store.get_summary_entry("Drama") == SummaryEntry("Drama", 5001)
    assert large_store.get_summary_entry("Sports") is None


def test_rollback_does_not_scan_details(large_store, make_record, monkeypatch):
    report = RentalReport(large_store)

    def offline(entry):
        raise StorageUnavailable("offline")

    monkeypatch.setattr(large_store, "update_summary_entry", offline)

    with pytest.raises(StorageUnavailable):
        report.add(make_record("Drama"))

    assert len(large_store._details) == 5000
    assert large_store.get_summary_entry("Drama") == SummaryEntry("Drama", 5000)


def test_inner_rollback_only_undoes_inner_block(store, make_record):
    with store.transaction():
        kept = store.insert_detail(make_record("Sports"))
        store.insert_summary_entry(SummaryEntry("Sports", 1))
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.insert_detail(make_record("Drama"))
                store.update_summary_entry(SummaryEntry("Sports", 2))
                store.delete_detail(kept.detail_id)
                raise RuntimeError("boom")

    assert store.list_details() == [kept]
    assert store.list_summary() == [SummaryEntry("Sports", 1)]


def test_outer_rollback_undoes_committed_inner_block(store, make_record):
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert_detail(make_record("Sports"))
            with store.transaction():
                store.insert_detail(make_record("Drama"))
                store.insert_summary_entry(SummaryEntry("Drama", 1))
            raise RuntimeError("boom")

    assert store.list_details() == []
    assert store.list_summary() == []


def test_rollback_restores_cleared_collections(report, store, make_record):
    report.add(make_record("Sports"))
    report.add(make_record("Animation"))
    before = report.details()

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.clear_details()
            store.clear_summary()
            store.insert_detail(make_record("Drama"))
            store.insert_summary_entry(SummaryEntry("Drama", 1))
            raise RuntimeError("boom")

    assert report.details() == before
    assert summary_dict(report) == {"Sports": 1, "Animation": 1}


def test_writes_outside_a_transaction_are_kept(store, make_record):
    row = store.insert_detail(make_record("Sports"))
    store.insert_summary_entry(SummaryEntry("Sports", 1))

    assert store.list_details() == [row]
    assert store._undo == []
