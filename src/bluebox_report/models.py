"""Data models for the rental report tables.

DetailRecord mirrors a row of rental_details, SummaryEntry a row of
rental_summary. Both convert to and from database rows in column order.
"""

from dataclasses import dataclass, astuple
from datetime import datetime


@dataclass(frozen=True)
class DetailRecord:
    """One qualifying rental with denormalized customer, movie and genre."""

    rental_date: datetime
    customer_id: int
    customer_name: str
    movie_title: str
    genre: str
    film_id: int
    category_id: int
    detail_id: int | None = None

    # Column order of rental_details, excluding the generated key
    COLUMNS = (
        "rental_date",
        "customer_id",
        "customer_name",
        "movie_title",
        "genre",
        "film_id",
        "category_id",
    )

    @classmethod
    def from_row(cls, row: tuple) -> "DetailRecord":
        """Build from (rental_id, rental_date, customer_id, ..., category_id)."""
        detail_id, *values = row
        return cls(*values, detail_id=detail_id)

    def values(self) -> tuple:
        """Column values for an INSERT, without the generated key."""
        return astuple(self)[:-1]


@dataclass(frozen=True)
class SummaryEntry:
    genre: str
    total_rentals: int

    @classmethod
    def from_row(cls, row: tuple) -> "SummaryEntry":
        return cls(genre=row[0], total_rentals=row[1])
