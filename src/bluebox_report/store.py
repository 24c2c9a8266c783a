"""In-process storage for the detail and summary collections.

MemoryStore owns both collections explicitly and serializes every unit of
work behind one re-entrant lock. It backs the tests and any caller that
wants the report without a database; PostgresStore (pgstore.py) exposes
the same methods against the real tables.
"""

import logging
import threading
from collections import Counter
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Iterable

from .errors import DuplicateGenreKey
from .models import DetailRecord, SummaryEntry

log = logging.getLogger(__name__)


def ranked(entries: Iterable[SummaryEntry]) -> list[SummaryEntry]:
    """Order summary entries by rental count desc, then genre."""
    return sorted(entries, key=lambda e: (-e.total_rentals, e.genre))


class MemoryStore:
    """Detail and summary collections held in memory."""

    def __init__(self):
        self._details: dict[int, DetailRecord] = {}
        self._summary: dict[str, int] = {}
        self._next_id = 1
        self._lock = threading.RLock()
        # One undo list per open transaction level, innermost last
        self._undo: list[list[Callable[[], None]]] = []

    @contextmanager
    def transaction(self):
        """Run a block as one unit of work.

        Every write records its inverse; if the block raises, the inverses
        are replayed newest first. Nested blocks behave like savepoints: an
        inner failure only undoes the inner block, and a committed inner
        block is undone with its parent. Ids handed out inside a rolled-back
        block are not reused.
        """
        with self._lock:
            self._undo.append([])
            try:
                yield self
            except BaseException:
                undo = self._undo.pop()
                for step in reversed(undo):
                    step()
                log.debug("Rolled back in-memory transaction (%d writes)", len(undo))
                raise
            undo = self._undo.pop()
            if self._undo:
                self._undo[-1].extend(undo)

    def _on_rollback(self, step: Callable[[], None]) -> None:
        if self._undo:
            self._undo[-1].append(step)

    def lock_genre(self, genre: str) -> None:
        # The transaction lock already serializes all writers.
        pass

    def lock_all(self) -> None:
        pass

    # -- details -----------------------------------------------------------

    def insert_detail(self, record: DetailRecord) -> DetailRecord:
        stored = replace(record, detail_id=self._next_id)
        self._next_id += 1
        self._details[stored.detail_id] = stored
        self._on_rollback(lambda: self._details.pop(stored.detail_id, None))
        return stored

    def delete_detail(self, detail_id: int) -> DetailRecord | None:
        removed = self._details.pop(detail_id, None)
        if removed is not None:
            self._on_rollback(lambda: self._details.__setitem__(detail_id, removed))
        return removed

    def bulk_load_details(self, records: Iterable[DetailRecord]) -> int:
        count = 0
        for record in records:
            self.insert_detail(record)
            count += 1
        return count

    def clear_details(self) -> None:
        previous = self._details
        self._details = {}
        self._on_rollback(lambda: setattr(self, "_details", previous))

    def list_details(self, genre: str | None = None, customer_id: int | None = None) -> list[DetailRecord]:
        rows = [
            r for r in self._details.values()
            if (genre is None or r.genre == genre)
            and (customer_id is None or r.customer_id == customer_id)
        ]
        return sorted(rows, key=lambda r: (r.rental_date, r.detail_id), reverse=True)

    def count_details_by_genre(self) -> dict[str, int]:
        return dict(Counter(r.genre for r in self._details.values()))

    # -- summary -----------------------------------------------------------

    def _restore_summary(self, genre: str, previous: int | None) -> None:
        if previous is None:
            self._summary.pop(genre, None)
        else:
            self._summary[genre] = previous

    def _set_summary(self, genre: str, total: int | None) -> None:
        previous = self._summary.get(genre)
        self._restore_summary(genre, total)
        self._on_rollback(lambda: self._restore_summary(genre, previous))

    def get_summary_entry(self, genre: str) -> SummaryEntry | None:
        if genre not in self._summary:
            return None
        return SummaryEntry(genre, self._summary[genre])

    def insert_summary_entry(self, entry: SummaryEntry) -> None:
        if entry.genre in self._summary:
            raise DuplicateGenreKey(entry.genre)
        self._set_summary(entry.genre, entry.total_rentals)

    def update_summary_entry(self, entry: SummaryEntry) -> None:
        self._set_summary(entry.genre, entry.total_rentals)

    def delete_summary_entry(self, genre: str) -> None:
        self._set_summary(genre, None)

    def clear_summary(self) -> None:
        previous = self._summary
        self._summary = {}
        self._on_rollback(lambda: setattr(self, "_summary", previous))

    def list_summary(self) -> list[SummaryEntry]:
        return ranked(SummaryEntry(g, n) for g, n in self._summary.items())
