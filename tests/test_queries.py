from datetime import date, datetime

import pytest

from bluebox_report.models import DetailRecord, SummaryEntry
from bluebox_report.queries import (
    customer_name,
    fetch_rental,
    fetch_qualifying_rentals,
    fetch_top_genres,
    top_genres,
)

from tests.conftest import FakeConnection

WINDOW = (date(2005, 6, 1), date(2005, 9, 1))


@pytest.mark.parametrize(
    "first, last, expected",
    [
        ("Mary", "Smith", "Mary Smith"),
        ("  Mary ", " Smith  ", "Mary Smith"),
        (None, " Smith", "Smith"),
        ("Mary ", None, "Mary"),
        (None, None, "N/A"),
    ],
)
def test_customer_name(first, last, expected):
    assert customer_name(first, last) == expected


def test_top_genres_from_summary():
    entries = [
        SummaryEntry("Animation", 1166),
        SummaryEntry("Sports", 1179),
        SummaryEntry("Action", 1112),
        SummaryEntry("Sci-Fi", 1101),
        SummaryEntry("Family", 1112),
    ]

    assert top_genres(entries) == ["Sports", "Animation", "Action"]
    assert top_genres(entries, limit=1) == ["Sports"]
    assert top_genres([]) == []


def test_fetch_top_genres():
    conn = FakeConnection(results=[[("Sports", 1179), ("Animation", 1166), ("Sci-Fi", 1101)]])

    assert fetch_top_genres(conn, WINDOW) == ["Sports", "Animation", "Sci-Fi"]

    sql, params = conn.executed[0]
    assert "BETWEEN %s AND %s" in sql
    assert params == (date(2005, 6, 1), date(2005, 9, 1), 3)


def test_fetch_qualifying_rentals_builds_detail_rows():
    rented = datetime(2005, 8, 23, 22, 50)
    conn = FakeConnection(results=[[
        (rented, 85, "Anne", "Powell", "Academy Dinosaur", "Sports", 1, 15),
        (rented, 86, None, None, "Alter Victory", "Animation", 2, 2),
    ]])

    rows = fetch_qualifying_rentals(conn, WINDOW, ["Sports", "Animation"])

    assert rows == [
        DetailRecord(rented, 85, "Anne Powell", "Academy Dinosaur", "Sports", 1, 15),
        DetailRecord(rented, 86, "N/A", "Alter Victory", "Animation", 2, 2),
    ]
    sql, params = conn.executed[0]
    assert "cat.name = ANY(%s)" in sql
    assert params[2] == ["Sports", "Animation"]


def test_fetch_qualifying_rentals_without_genres_skips_query():
    conn = FakeConnection()

    assert fetch_qualifying_rentals(conn, WINDOW, []) == []
    assert conn.executed == []


def test_fetch_rental_ignores_window_and_genres():
    rented = datetime(2006, 2, 14, 15, 16)
    conn = FakeConnection(results=[[(rented, 5, "Elizabeth", "Brown", "Bound Cheaper", "Drama", 4, 7)]])

    rows = fetch_rental(conn, 11739)

    assert rows == [DetailRecord(rented, 5, "Elizabeth Brown", "Bound Cheaper", "Drama", 4, 7)]
    sql, params = conn.executed[0]
    assert "WHERE r.rental_id = %s" in sql
    assert "BETWEEN" not in sql
    assert params == (11739,)
