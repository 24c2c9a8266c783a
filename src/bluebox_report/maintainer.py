"""Incremental maintenance of rental_summary.

Every insertion into or deletion from rental_details goes through
on_insert/on_delete inside the same store transaction, so the summary
always equals the detail rows grouped by genre and counted. full_rebuild
recomputes it from scratch for the initial load or after a bulk change
that bypassed the incremental path.
"""

import logging

from .errors import InvariantViolation
from .models import DetailRecord, SummaryEntry

log = logging.getLogger(__name__)


class SummaryMaintainer:
    """Keeps the per-genre summary in step with the detail rows."""

    def __init__(self, store):
        self.store = store
        self.violations: list[InvariantViolation] = []

    def on_insert(self, record: DetailRecord) -> None:
        """Count a newly inserted detail row towards its genre."""
        with self.store.transaction():
            self.store.lock_genre(record.genre)
            entry = self.store.get_summary_entry(record.genre)
            if entry is None:
                self.store.insert_summary_entry(SummaryEntry(record.genre, 1))
                log.debug("Summary: new genre %r", record.genre)
            else:
                self.store.update_summary_entry(
                    SummaryEntry(entry.genre, entry.total_rentals + 1)
                )

    def on_delete(self, record: DetailRecord) -> None:
        """Remove a deleted detail row from its genre's count.

        A missing summary entry means the summary was already wrong; the
        miss is logged and recorded in self.violations and the deletion
        goes ahead.
        """
        with self.store.transaction():
            self.store.lock_genre(record.genre)
            entry = self.store.get_summary_entry(record.genre)
            if entry is None:
                violation = InvariantViolation(record.genre, record.detail_id)
                self.violations.append(violation)
                log.error("Skipping summary decrement: %s", violation)
                return

            remaining = entry.total_rentals - 1
            if remaining <= 0:
                self.store.delete_summary_entry(entry.genre)
                log.debug("Summary: genre %r dropped", entry.genre)
            else:
                self.store.update_summary_entry(SummaryEntry(entry.genre, remaining))

    def full_rebuild(self) -> int:
        """Recompute the summary from all detail rows. Returns the genre count."""
        with self.store.transaction():
            self.store.lock_all()
            counts = self.store.count_details_by_genre()
            self.store.clear_summary()
            for genre, total in counts.items():
                self.store.insert_summary_entry(SummaryEntry(genre, total))

        log.info("Rebuilt rental summary: %d genres, %d rentals",
                 len(counts), sum(counts.values()))
        return len(counts)
