from contextlib import contextmanager
from datetime import datetime, timedelta
from itertools import count

import pytest

from bluebox_report.models import DetailRecord
from bluebox_report.report import RentalReport
from bluebox_report.store import MemoryStore

FILMS = {
    "Sports": (1, 15, "Academy Dinosaur"),
    "Animation": (2, 2, "Alter Victory"),
    "Sci-Fi": (3, 14, "Arabia Dogma"),
    "Drama": (4, 7, "Bound Cheaper"),
}


@pytest.fixture
def make_record():
    """Factory for detail rows; successive calls get later rental dates."""
    counter = count()

    def _make(genre="Sports", customer_id=85, customer_name="Anne Powell"):
        film_id, category_id, title = FILMS.get(genre, (99, 99, f"{genre} Movie"))
        return DetailRecord(
            rental_date=datetime(2005, 6, 1) + timedelta(hours=next(counter)),
            customer_id=customer_id,
            customer_name=customer_name,
            movie_title=title,
            genre=genre,
            film_id=film_id,
            category_id=category_id,
        )

    return _make


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def report(store):
    return RentalReport(store)


def summary_dict(report):
    return {e.genre: e.total_rentals for e in report.summary()}


class FakeCursor:
    def __init__(self, conn, rows=None):
        self.conn = conn
        self.rows = rows or []

    def execute(self, sql, params=None):
        return self.conn.execute(sql, params)

    def executemany(self, sql, params_seq):
        self.conn.executed.append((sql, list(params_seq)))

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return list(self.rows)

    def close(self):
        pass


class FakeConnection:
    """Stand-in for psycopg.Connection that records statements.

    `results` is a queue of row lists handed out to successive execute()
    calls; `fail_with` makes every execute() raise.
    """

    def __init__(self, results=None):
        self.executed = []
        self.results = list(results or [])
        self.fail_with = None
        self.commits = 0
        self.rollbacks = 0

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        if self.fail_with is not None:
            raise self.fail_with
        rows = self.results.pop(0) if self.results else []
        return FakeCursor(self, rows)

    def cursor(self):
        return FakeCursor(self)

    @contextmanager
    def transaction(self):
        try:
            yield
        except BaseException:
            self.rollbacks += 1
            raise
        self.commits += 1

    def commit(self):
        self.commits += 1

    def statements(self):
        return [" ".join(sql.split()) for sql, _ in self.executed]


@pytest.fixture
def fake_conn():
    return FakeConnection()
