"""Read-only queries against the upstream DVD rental tables.

These feed the report: the top-genre selector decides which genres are
in scope, and the qualifying-rental query produces the detail rows that
a refresh loads into rental_details.
"""

import logging
from datetime import date
from typing import Iterable

import psycopg

from .models import DetailRecord, SummaryEntry
from .store import ranked

log = logging.getLogger(__name__)

RENTAL_GENRE_JOINS = """
    FROM rental AS r
    JOIN inventory AS i ON r.inventory_id = i.inventory_id
    JOIN film AS f ON i.film_id = f.film_id
    JOIN film_category AS fc ON f.film_id = fc.film_id
    JOIN category AS cat ON fc.category_id = cat.category_id
"""


def customer_name(first_name: str | None, last_name: str | None) -> str:
    """Display name for a customer, tolerating missing name parts."""
    if first_name is None and last_name is None:
        return "N/A"
    if first_name is None:
        return last_name.strip()
    if last_name is None:
        return first_name.strip()
    return f"{first_name.strip()} {last_name.strip()}"


def fetch_top_genres(conn: psycopg.Connection, window: tuple[date, date], limit: int = 3) -> list[str]:
    """Return the `limit` most rented genres in the window, most rented first."""
    start, end = window
    rows = conn.execute(
        f"""SELECT cat.name AS genre, count(r.rental_id) AS rental_count
            {RENTAL_GENRE_JOINS}
            WHERE r.rental_date BETWEEN %s AND %s
            GROUP BY cat.name
            ORDER BY rental_count DESC, cat.name
            LIMIT %s""",
        (start, end, limit),
    ).fetchall()

    genres = [genre for genre, _ in rows]
    log.debug("Top %d genres for %s..%s: %s", limit, start, end, genres)
    return genres


def top_genres(entries: Iterable[SummaryEntry], limit: int = 3) -> list[str]:
    """Rank genres of an existing summary by rental count."""
    return [e.genre for e in ranked(entries)[:limit]]


DETAIL_SELECT = f"""SELECT r.rental_date, cust.customer_id, cust.first_name, cust.last_name,
           f.title, cat.name, f.film_id, cat.category_id
    {RENTAL_GENRE_JOINS}
    JOIN customer AS cust ON r.customer_id = cust.customer_id
"""


def _detail_records(rows) -> list[DetailRecord]:
    return [
        DetailRecord(
            rental_date=rental_date,
            customer_id=customer_id,
            customer_name=customer_name(first_name, last_name),
            movie_title=title,
            genre=genre,
            film_id=film_id,
            category_id=category_id,
        )
        for rental_date, customer_id, first_name, last_name, title, genre, film_id, category_id in rows
    ]


def fetch_qualifying_rentals(
    conn: psycopg.Connection, window: tuple[date, date], genres: list[str]
) -> list[DetailRecord]:
    """Detail rows for every rental in the window whose film is in one of `genres`.

    Rows come back newest first.
    """
    if not genres:
        return []

    start, end = window
    rows = conn.execute(
        f"""{DETAIL_SELECT}
            WHERE r.rental_date BETWEEN %s AND %s
              AND cat.name = ANY(%s)
            ORDER BY r.rental_date DESC""",
        (start, end, list(genres)),
    ).fetchall()

    log.info("Found %d qualifying rentals for genres %s", len(rows), ", ".join(genres))
    return _detail_records(rows)


def fetch_rental(conn: psycopg.Connection, rental_id: int) -> list[DetailRecord]:
    """Detail rows for one upstream rental, one per category of its film.

    No window or genre filter is applied; an unknown rental_id gives [].
    """
    rows = conn.execute(
        f"""{DETAIL_SELECT}
            WHERE r.rental_id = %s
            ORDER BY cat.name""",
        (rental_id,),
    ).fetchall()
    return _detail_records(rows)
