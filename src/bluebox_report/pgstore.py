"""PostgreSQL storage for rental_details and rental_summary."""

import logging
from contextlib import contextmanager
from typing import Iterable

import psycopg
from psycopg import errors

from .errors import DuplicateGenreKey, StorageUnavailable
from .models import DetailRecord, SummaryEntry

log = logging.getLogger(__name__)

SCHEMA_DDL = [
    """CREATE TABLE IF NOT EXISTS rental_summary (
           genre VARCHAR(25) PRIMARY KEY,
           total_rentals INTEGER NOT NULL CHECK (total_rentals > 0)
       )""",
    """CREATE TABLE IF NOT EXISTS rental_details (
           rental_id SERIAL PRIMARY KEY,
           rental_date TIMESTAMP,
           customer_id INTEGER REFERENCES customer (customer_id),
           customer_name VARCHAR(60),
           movie_title VARCHAR(255),
           genre VARCHAR(25) NOT NULL,
           film_id INTEGER REFERENCES film (film_id),
           category_id INTEGER REFERENCES category (category_id)
       )""",
    "CREATE INDEX IF NOT EXISTS rental_details_genre_idx ON rental_details (genre)",
]

DETAIL_COLUMNS = ", ".join(DetailRecord.COLUMNS)
DETAIL_PLACEHOLDERS = ", ".join(["%s"] * len(DetailRecord.COLUMNS))


def create_schema(conn: psycopg.Connection) -> None:
    """Create the report tables if they do not exist yet."""
    cur = conn.cursor()
    for statement in SCHEMA_DDL:
        cur.execute(statement)
    conn.commit()
    cur.close()
    log.info("Report tables ready (rental_details, rental_summary)")


class PostgresStore:
    """Report tables accessed through a psycopg connection.

    All methods except transaction() expect to run inside a transaction()
    block so that a detail mutation and its summary update commit together.
    """

    def __init__(self, conn: psycopg.Connection):
        self.conn = conn

    @contextmanager
    def transaction(self):
        """Run a block in a transaction (a savepoint when nested).

        Connection-level failures surface as StorageUnavailable after the
        block has been rolled back.
        """
        try:
            with self.conn.transaction():
                yield self
        except psycopg.OperationalError as exc:
            log.error("Database unavailable, transaction rolled back: %s", exc)
            raise StorageUnavailable(str(exc)) from exc

    def lock_genre(self, genre: str) -> None:
        """Serialize summary writers for one genre until commit.

        An advisory lock also covers genres with no summary row yet, which
        SELECT ... FOR UPDATE cannot.
        """
        self.conn.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (genre,))

    def lock_all(self) -> None:
        """Block every other report writer until commit.

        Used by rebuild and reload, which read and rewrite the whole summary.
        SHARE ROW EXCLUSIVE conflicts with the ROW EXCLUSIVE lock that every
        insert, update and delete takes. It is acquired in the same table order
        as RentalReport.add (details, then summary).
        """
        self.conn.execute("LOCK TABLE rental_details, rental_summary IN SHARE ROW EXCLUSIVE MODE")

    # -- details -----------------------------------------------------------

    def insert_detail(self, record: DetailRecord) -> DetailRecord:
        row = self.conn.execute(
            f"INSERT INTO rental_details ({DETAIL_COLUMNS}) "
            f"VALUES ({DETAIL_PLACEHOLDERS}) RETURNING rental_id",
            record.values(),
        ).fetchone()
        return DetailRecord.from_row((row[0], *record.values()))

    def delete_detail(self, detail_id: int) -> DetailRecord | None:
        row = self.conn.execute(
            f"DELETE FROM rental_details WHERE rental_id = %s "
            f"RETURNING rental_id, {DETAIL_COLUMNS}",
            (detail_id,),
        ).fetchone()
        return DetailRecord.from_row(row) if row else None

    def bulk_load_details(self, records: Iterable[DetailRecord]) -> int:
        params = [r.values() for r in records]
        if not params:
            return 0
        cur = self.conn.cursor()
        cur.executemany(
            f"INSERT INTO rental_details ({DETAIL_COLUMNS}) VALUES ({DETAIL_PLACEHOLDERS})",
            params,
        )
        cur.close()
        return len(params)

    def clear_details(self) -> None:
        self.conn.execute("DELETE FROM rental_details")

    def list_details(self, genre: str | None = None, customer_id: int | None = None) -> list[DetailRecord]:
        clauses = []
        params: list = []
        if genre is not None:
            clauses.append("genre = %s")
            params.append(genre)
        if customer_id is not None:
            clauses.append("customer_id = %s")
            params.append(customer_id)
        where = f"WHERE {' AND '.join(clauses)} " if clauses else ""
        rows = self.conn.execute(
            f"SELECT rental_id, {DETAIL_COLUMNS} FROM rental_details "
            f"{where}ORDER BY rental_date DESC, rental_id DESC",
            params or None,
        ).fetchall()
        return [DetailRecord.from_row(row) for row in rows]

    def count_details_by_genre(self) -> dict[str, int]:
        rows = self.conn.execute(
            "SELECT genre, count(*) FROM rental_details GROUP BY genre"
        ).fetchall()
        return {genre: count for genre, count in rows}

    # -- summary -----------------------------------------------------------

    def get_summary_entry(self, genre: str) -> SummaryEntry | None:
        row = self.conn.execute(
            "SELECT genre, total_rentals FROM rental_summary WHERE genre = %s",
            (genre,),
        ).fetchone()
        return SummaryEntry.from_row(row) if row else None

    def insert_summary_entry(self, entry: SummaryEntry) -> None:
        try:
            self.conn.execute(
                "INSERT INTO rental_summary (genre, total_rentals) VALUES (%s, %s)",
                (entry.genre, entry.total_rentals),
            )
        except errors.UniqueViolation as exc:
            raise DuplicateGenreKey(entry.genre) from exc

    def update_summary_entry(self, entry: SummaryEntry) -> None:
        self.conn.execute(
            "UPDATE rental_summary SET total_rentals = %s WHERE genre = %s",
            (entry.total_rentals, entry.genre),
        )

    def delete_summary_entry(self, genre: str) -> None:
        self.conn.execute("DELETE FROM rental_summary WHERE genre = %s", (genre,))

    def clear_summary(self) -> None:
        self.conn.execute("DELETE FROM rental_summary")

    def list_summary(self) -> list[SummaryEntry]:
        rows = self.conn.execute(
            "SELECT genre, total_rentals FROM rental_summary "
            "ORDER BY total_rentals DESC, genre"
        ).fetchall()
        return [SummaryEntry.from_row(row) for row in rows]
