"""Report orchestration: one function per CLI subcommand.

Each function takes a database connection (and config where needed),
builds a RentalReport over PostgresStore, and does its work in the
report's own units of work.
"""

import logging

from . import queries
from .config import Config
from .models import DetailRecord, SummaryEntry
from .pgstore import PostgresStore, create_schema
from .report import RentalReport

log = logging.getLogger(__name__)


def open_report(conn) -> RentalReport:
    return RentalReport(PostgresStore(conn))


def init_schema(conn):
    """Create rental_details and rental_summary if needed."""
    create_schema(conn)


def refresh(conn, config: Config) -> int:
    """Backfill rental_details for the top genres and rebuild the summary.

    Existing detail rows are replaced. Returns the number of rows loaded.
    """
    genres = queries.fetch_top_genres(conn, config.window, config.top_genres)
    if not genres:
        log.warning("No rentals between %s and %s; the report will be empty",
                    config.window_start, config.window_end)

    records = queries.fetch_qualifying_rentals(conn, config.window, genres)
    return open_report(conn).reload(records)


def rebuild(conn) -> int:
    """Recompute rental_summary from rental_details."""
    return open_report(conn).rebuild()


def summary(conn) -> list[SummaryEntry]:
    return open_report(conn).summary()


def top_genres(conn, config: Config) -> list[str]:
    """Top genres straight from the upstream rental data."""
    return queries.fetch_top_genres(conn, config.window, config.top_genres)


def details(conn, genre: str | None = None, customer_id: int | None = None) -> list[DetailRecord]:
    return open_report(conn).details(genre=genre, customer_id=customer_id)


def add_rental(conn, rental_id: int) -> list[DetailRecord]:
    """Insert detail rows for one upstream rental through the incremental path.

    All rows for the rental (one per film category) commit together.
    """
    records = queries.fetch_rental(conn, rental_id)
    if not records:
        log.warning("No rental with id %d", rental_id)
        return []

    report = open_report(conn)
    with report.store.transaction():
        return [report.add(record) for record in records]


def remove(conn, detail_id: int) -> DetailRecord | None:
    return open_report(conn).remove(detail_id)


def verify(conn) -> dict[str, tuple[int, int]]:
    """Report genres where rental_summary disagrees with rental_details."""
    mismatches = open_report(conn).check()
    if mismatches:
        for genre, (stored, actual) in sorted(mismatches.items()):
            log.warning("  %-25s summary=%d details=%d", genre, stored, actual)
    else:
        log.info("rental_summary is consistent with rental_details")
    return mismatches
