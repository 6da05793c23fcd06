"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for creating new database connections
2. The `ConnectionWrapper` class exposing the SQL execution capability used by
   the provider
3. Engine creation and management through a thread-safe registry

The ConnectionWrapper runs `$n` parameterized statements:
- execute(sql, *args) - Execute SQL and return affected row count
- query_row(sql, *args) - Execute SQL expecting a row, NotFoundError if none
- query(sql, *args) - Execute SQL and return all rows
"""
import atexit
import logging
import threading
from collections.abc import Callable
from dataclasses import fields
from typing import Any, Self

import psycopg
import sqlalchemy as sa
from pgorm.cursor import Cursor
from pgorm.exceptions import ConnectionFailure, NotFoundError
from pgorm.options import DatabaseOptions
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = [
    'ConnectionWrapper',
    'connect',
    'create_url_from_options',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def create_url_from_options(options: DatabaseOptions,
                            url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Convert DatabaseOptions to SQLAlchemy URL.
    """
    query = {'application_name': options.appname}
    if options.timeout:
        query['connect_timeout'] = str(options.timeout)

    if options.dsn:
        url = sa.make_url(options.dsn)
        return url.set(drivername='postgresql+psycopg').update_query_dict(query)

    return url_creator(
        drivername='postgresql+psycopg',
        username=options.username,
        password=options.password,
        host=options.hostname,
        port=options.port,
        database=options.database,
        query=query
    )


def get_engine_for_options(options: DatabaseOptions, use_pool: bool = False,
                           pool_size: int = 5, pool_recycle: int = 300,
                           pool_timeout: int = 30,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.
    """
    key = f'{str(options)}_{use_pool}_{pool_size}_{pool_recycle}_{pool_timeout}'

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        url = create_url_from_options(options)

        engine_kwargs: dict[str, Any] = {'echo': False}

        if not use_pool:
            engine_kwargs['poolclass'] = NullPool
        else:
            engine_kwargs['pool_size'] = pool_size
            engine_kwargs['pool_recycle'] = pool_recycle
            engine_kwargs['pool_timeout'] = pool_timeout
            engine_kwargs['max_overflow'] = 10
            engine_kwargs['pool_pre_ping'] = True
            engine_kwargs['pool_reset_on_return'] = 'rollback'

        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in list(_engine_registry.values()):
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ConnectionWrapper:
    """Wraps a SQLAlchemy connection object to run `$n` statements and track
    calls and execution time

    Every statement runs in its own implicit transaction: it is committed on
    success and rolled back on failure before the error propagates. Errors
    from psycopg are raised unchanged. Statements from different threads are
    serialized, so a rollback never discards another thread's work.
    """

    def __init__(self, sa_connection: sa.engine.Connection | None = None,
                 options: DatabaseOptions | None = None) -> None:
        """Initialize a connection wrapper
        """
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine if sa_connection else None
        self.options = options
        self.dbapi_connection = sa_connection.connection if sa_connection else None
        self.calls = 0
        self.time = 0
        self._lock = threading.Lock()

    def __enter__(self) -> Self:
        """Support for context manager protocol
        """
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        """Return the connection to the pool when exiting the context manager
        """
        self.close()
        logger.debug('Closed connection via context manager')

    def __getattr__(self, name: str) -> Any:
        """Delegate attribute access to the SQLAlchemy connection or the raw connection.
        """
        if hasattr(self.sa_connection, name):
            return getattr(self.sa_connection, name)

        return getattr(self.dbapi_connection, name)

    @property
    def driver_connection(self) -> psycopg.Connection:
        """The psycopg connection behind the pool proxy."""
        return self.dbapi_connection.driver_connection

    def cursor(self) -> Cursor:
        """Get a wrapped raw cursor for this connection
        """
        if getattr(self.sa_connection, 'closed', False):
            self.sa_connection = self.engine.connect()
            self.dbapi_connection = self.sa_connection.connection

        return Cursor(psycopg.RawCursor(self.driver_connection), self)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def commit(self) -> None:
        self.dbapi_connection.commit()

    def rollback(self) -> None:
        self.dbapi_connection.rollback()

    def close(self) -> None:
        """Close the SQLAlchemy connection
        """
        if self.sa_connection is not None and not self.sa_connection.closed:
            self.sa_connection.close()
            logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per query)')

    def _run(self, sql: str, args: tuple, fetch: Callable[[Cursor], Any]) -> Any:
        """Run one statement, commit, and return `fetch(cursor)`.

        Holds the wrapper lock from reconnect through commit or rollback.
        """
        with self._lock:
            try:
                with self.cursor() as cursor:
                    cursor.execute(sql, args)
                    result = fetch(cursor)
                self.commit()
                return result
            except Exception:
                try:
                    self.rollback()
                except psycopg.Error as err:
                    logger.debug(f'Rollback failed: {err}')
                raise

    def execute(self, sql: str, *args: Any) -> int:
        """Execute a SQL statement and return affected row count.
        """
        rowcount = self._run(sql, args, lambda cursor: cursor.rowcount)
        logger.debug(f'Executed query with {len(args)} parameters')
        return rowcount

    def query_row(self, sql: str, *args: Any) -> tuple:
        """Execute a SQL statement and return its first row.

        Raises NotFoundError if the statement produced no rows.
        """
        row = self._run(sql, args, lambda cursor: cursor.fetchone())
        if row is None:
            raise NotFoundError('no rows in result set')
        return row

    def query(self, sql: str, *args: Any) -> list[tuple]:
        """Execute a SQL statement and return all rows in result-set order.
        """
        rows = self._run(sql, args, lambda cursor: cursor.fetchall())
        logger.debug(f'Query returned {len(rows)} rows')
        return rows


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> ConnectionWrapper:
    """Connect to a database using SQLAlchemy for connection management

    Args:
        options: Can be:
                - DatabaseOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Connection pooling options:
        use_pool: Whether to use connection pooling (default: False)
        pool_max_connections: Maximum connections in pool (default: 5)
        pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
        pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)

    Returns
        ConnectionWrapper object for connecting to the database

    Raises
        ConnectionFailure if the database refuses the connection
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options, use_pool=options.use_pool,
                                    pool_size=options.pool_max_connections,
                                    pool_recycle=options.pool_max_idle_time,
                                    pool_timeout=options.pool_wait_timeout)

    try:
        sa_connection = engine.connect()
    except sa.exc.DBAPIError as err:
        raise ConnectionFailure(f'Could not connect to {options.drivername} database: {err}') from err

    return ConnectionWrapper(sa_connection, options)
