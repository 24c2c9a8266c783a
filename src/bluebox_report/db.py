"""Database connection pool management using psycopg3 ConnectionPool."""

import logging
from contextlib import contextmanager

import psycopg
from psycopg_pool import ConnectionPool

from .config import Config
from .errors import StorageUnavailable

log = logging.getLogger(__name__)

_pool: ConnectionPool | None = None
_timeout: float = 10.0


def conninfo_for(config: Config) -> str:
    """Build a libpq connection string for the configured database.

    search_path is set to the configured schema so the report tables and
    the upstream rental tables resolve without qualification.
    """
    return (
        f"dbname={config.db_name} "
        f"host={config.db_host} "
        f"port={config.db_port} "
        f"user={config.db_user} "
        f"password={config.db_password} "
        f"options=-csearch_path={config.db_schema}"
    )


def init_pool(config: Config) -> ConnectionPool:
    """Create and open the global connection pool.

    Connections are opened in the background; an unreachable server shows
    up as StorageUnavailable from connection() once pool_timeout expires.
    """
    global _pool, _timeout

    log.info(
        "Initializing connection pool (%d-%d connections) to %s@%s:%d/%s",
        config.pool_min_size, config.pool_max_size,
        config.db_user, config.db_host, config.db_port, config.db_name,
    )

    _timeout = config.pool_timeout
    _pool = ConnectionPool(
        conninfo=conninfo_for(config),
        min_size=config.pool_min_size,
        max_size=config.pool_max_size,
        timeout=config.pool_timeout,
        open=True,
    )

    return _pool


def get_pool() -> ConnectionPool:
    """Return the global connection pool. Raises RuntimeError if not initialized."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    return _pool


@contextmanager
def connection():
    """Context manager that borrows a connection from the pool.

    The connection is returned to the pool on exit. Transactions are
    managed by the caller (see PostgresStore.transaction). Failing to get a
    connection (PoolTimeout) or losing it mid-block raises StorageUnavailable.
    """
    pool = get_pool()
    try:
        with pool.connection(timeout=_timeout) as conn:
            yield conn
    except psycopg.OperationalError as exc:
        log.error("Database unavailable: %s", exc)
        raise StorageUnavailable(str(exc)) from exc


def close_pool():
    """Close the global connection pool, releasing all connections."""
    global _pool
    if _pool is not None:
        _pool.close()
        _pool = None
        log.info("Connection pool closed")
