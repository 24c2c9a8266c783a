"""The rental report: the only write path for rental_details.

Each public method is one unit of work. A detail mutation and the
matching summary update commit together or not at all.
"""

import logging
from typing import Iterable

from .maintainer import SummaryMaintainer
from .models import DetailRecord, SummaryEntry
from .tracing import report_span

log = logging.getLogger(__name__)


class RentalReport:
    """Detail rows plus the incrementally maintained genre summary."""

    def __init__(self, store, maintainer: SummaryMaintainer | None = None):
        self.store = store
        self.maintainer = maintainer or SummaryMaintainer(store)

    def add(self, record: DetailRecord) -> DetailRecord:
        """Insert a detail row and count it in the summary."""
        with report_span("add", genre=record.genre) as span:
            with self.store.transaction():
                stored = self.store.insert_detail(record)
                self.maintainer.on_insert(stored)
            if span:
                span.set_attribute("detail.id", stored.detail_id)
        log.debug("Added detail %d (%s)", stored.detail_id, stored.genre)
        return stored

    def remove(self, detail_id: int) -> DetailRecord | None:
        """Delete a detail row by id. Returns the removed row, or None if absent."""
        with report_span("remove", **{"detail.id": detail_id}):
            with self.store.transaction():
                removed = self.store.delete_detail(detail_id)
                if removed is not None:
                    self.maintainer.on_delete(removed)

        if removed is None:
            log.info("No detail row with id %d", detail_id)
        else:
            log.debug("Removed detail %d (%s)", detail_id, removed.genre)
        return removed

    def reload(self, records: Iterable[DetailRecord]) -> int:
        """Replace every detail row and rebuild the summary from them.

        The rows are bulk-loaded without per-row maintenance; the rebuild in
        the same transaction brings the summary back in line.
        """
        with report_span("reload") as span:
            with self.store.transaction():
                self.store.lock_all()
                self.store.clear_details()
                loaded = self.store.bulk_load_details(records)
                self.maintainer.full_rebuild()
            if span:
                span.set_attribute("detail.count", loaded)
        log.info("Reloaded %d detail rows", loaded)
        return loaded

    def rebuild(self) -> int:
        """Recompute the summary from the current detail rows."""
        with report_span("rebuild"):
            return self.maintainer.full_rebuild()

    def summary(self) -> list[SummaryEntry]:
        with self.store.transaction():
            return self.store.list_summary()

    def details(self, genre: str | None = None, customer_id: int | None = None) -> list[DetailRecord]:
        with self.store.transaction():
            return self.store.list_details(genre=genre, customer_id=customer_id)

    def check(self) -> dict[str, tuple[int, int]]:
        """Compare the stored summary with a fresh count of the detail rows.

        Returns {genre: (stored, actual)} for every genre that disagrees,
        including stored entries for genres with no rows and zero-count
        entries. An empty dict means the summary is consistent.
        """
        with self.store.transaction():
            stored = {e.genre: e.total_rentals for e in self.store.list_summary()}
            actual = self.store.count_details_by_genre()

        mismatches = {}
        for genre in stored.keys() | actual.keys():
            pair = (stored.get(genre, 0), actual.get(genre, 0))
            if pair[0] != pair[1] or pair[0] <= 0:
                mismatches[genre] = pair
        return mismatches
