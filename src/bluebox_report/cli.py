"""Command-line interface for bluebox-report."""

import argparse
import logging
import sys

from .config import load_config
from .errors import ReportError

log = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )


def _run(args, func, *func_args, with_config=False):
    """Open the pool and tracing, call func(conn, ...), then tear down."""
    config = load_config(args.env_file)
    config.validate()

    from .db import init_pool, close_pool, connection
    from .tracing import init_tracing, shutdown_tracing

    init_tracing(config)
    init_pool(config)
    try:
        with connection() as conn:
            if with_config:
                return func(conn, config, *func_args)
            return func(conn, *func_args)
    finally:
        close_pool()
        shutdown_tracing()


def cmd_check(args):
    """Verify configuration and database connectivity."""
    config = load_config(args.env_file)
    config.validate()

    from .db import init_pool, close_pool, connection

    log.info("Configuration loaded successfully")
    log.info("  Database: %s@%s:%d/%s (schema %s)",
             config.db_user, config.db_host, config.db_port, config.db_name, config.db_schema)
    log.info("  Window: %s .. %s", config.window_start, config.window_end)
    log.info("  Top genres: %d", config.top_genres)
    log.info("  OTel: %s", "enabled" if config.otel_enabled else "disabled")

    init_pool(config)
    try:
        with connection() as conn:
            cur = conn.cursor()

            cur.execute("SELECT version()")
            version = cur.fetchone()[0]
            log.info("  PostgreSQL: %s", version.split(",")[0])

            tables = [
                ("rental", "Rentals"),
                ("inventory", "Inventory"),
                ("film", "Films"),
                ("category", "Categories"),
                ("customer", "Customers"),
            ]
            for table, label in tables:
                cur.execute(f"SELECT count(*) FROM {table}")
                count = cur.fetchone()[0]
                log.info("  %-15s %d rows", label, count)

            cur.close()

        log.info("All checks passed")
    finally:
        close_pool()


def cmd_init_schema(args):
    from . import pipeline

    _run(args, pipeline.init_schema)


def cmd_refresh(args):
    from . import pipeline

    loaded = _run(args, pipeline.refresh, with_config=True)
    log.info("Refresh complete: %d detail rows", loaded)


def cmd_rebuild(args):
    from . import pipeline

    _run(args, pipeline.rebuild)


def cmd_summary(args):
    from . import pipeline

    entries = _run(args, pipeline.summary)

    log.info("")
    log.info("  %-25s %10s", "Genre", "Rentals")
    log.info("  %-25s %10s", "-" * 25, "-" * 10)
    for entry in entries:
        log.info("  %-25s %10d", entry.genre, entry.total_rentals)


def cmd_top_genres(args):
    from . import pipeline

    genres = _run(args, pipeline.top_genres, with_config=True)
    for rank, genre in enumerate(genres, start=1):
        log.info("  %d. %s", rank, genre)


def cmd_details(args):
    from . import pipeline

    rows = _run(args, pipeline.details, args.genre, args.customer_id)
    shown = rows[:args.limit] if args.limit else rows
    for row in shown:
        log.info("  %8d  %s  %-25s %-30s %s",
                 row.detail_id, row.rental_date, row.customer_name, row.movie_title, row.genre)
    log.info("%d rows (%d shown)", len(rows), len(shown))


def cmd_add(args):
    from . import pipeline

    added = _run(args, pipeline.add_rental, args.rental_id)
    if not added:
        sys.exit(1)
    for row in added:
        log.info("Added detail %d (%s, %s)", row.detail_id, row.movie_title, row.genre)


def cmd_remove(args):
    from . import pipeline

    removed = _run(args, pipeline.remove, args.detail_id)
    if removed is None:
        sys.exit(1)
    log.info("Removed detail %d (%s, %s)", removed.detail_id, removed.movie_title, removed.genre)


def cmd_verify(args):
    from . import pipeline

    if _run(args, pipeline.verify):
        log.error("rental_summary is out of sync; run 'bluebox-report rebuild'")
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bluebox-report",
        description="Summer top-genre rental report for the DVD rental sample database",
    )
    parser.add_argument("--env-file", help="Path to .env file (default: auto-detect)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # check
    p_check = subparsers.add_parser("check", help="Verify config and database connectivity")
    p_check.set_defaults(func=cmd_check)

    # init-schema
    p_schema = subparsers.add_parser("init-schema", help="Create rental_details and rental_summary")
    p_schema.set_defaults(func=cmd_init_schema)

    # refresh
    p_refresh = subparsers.add_parser("refresh", help="Reload detail rows for the top genres and rebuild the summary")
    p_refresh.set_defaults(func=cmd_refresh)

    # rebuild
    p_rebuild = subparsers.add_parser("rebuild", help="Recompute rental_summary from rental_details")
    p_rebuild.set_defaults(func=cmd_rebuild)

    # summary
    p_summary = subparsers.add_parser("summary", help="Show rental counts per genre")
    p_summary.set_defaults(func=cmd_summary)

    # top-genres
    p_top = subparsers.add_parser("top-genres", help="Show the most rented genres from upstream rental data")
    p_top.set_defaults(func=cmd_top_genres)

    # details
    p_details = subparsers.add_parser("details", help="List detail rows")
    p_details.add_argument("--genre", help="Only rows for this genre")
    p_details.add_argument("--customer-id", type=int, help="Only rows for this customer")
    p_details.add_argument("--limit", type=int, default=20, help="Rows to print, 0 for all (default: 20)")
    p_details.set_defaults(func=cmd_details)

    # add
    p_add = subparsers.add_parser("add", help="Insert detail rows for one upstream rental and update the summary")
    p_add.add_argument("rental_id", type=int, help="rental.rental_id to copy into rental_details")
    p_add.set_defaults(func=cmd_add)

    # remove
    p_remove = subparsers.add_parser("remove", help="Delete one detail row and update the summary")
    p_remove.add_argument("detail_id", type=int, help="rental_details.rental_id to delete")
    p_remove.set_defaults(func=cmd_remove)

    # verify
    p_verify = subparsers.add_parser("verify", help="Check rental_summary against rental_details")
    p_verify.set_defaults(func=cmd_verify)

    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(1)
    except (ValueError, ReportError) as e:
        log.error(str(e))
        sys.exit(1)
    except Exception as e:
        log.error("Fatal error: %s", e, exc_info=True)
        sys.exit(1)
