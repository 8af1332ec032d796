"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for opening a new database session
2. The `Connection` class that wraps a SQLAlchemy connection with the
   statement-executor methods
3. Engine creation and management through a thread-safe engine cache

SQLAlchemy is used for URL building and connection management only; every
engine uses `NullPool`, so a Connection owns exactly one driver session.
Statements run directly on the DBAPI connection through `superdb.cursor`.
"""
import atexit
import logging
import threading
from collections.abc import Callable
from dataclasses import fields
from typing import Any, Self

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from superdb import query
from superdb.cursor import Cursor, get_cursor
from superdb.exceptions import ConnectionFailure, DriverError
from superdb.formatting import Formatter
from superdb.options import DatabaseOptions
from superdb.results import BatchResult, DatatablePage
from superdb.strategy import DatabaseStrategy, get_strategy
from superdb.transaction import Transaction

from libb import load_options

__all__ = [
    'Connection',
    'connect',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()

FormatSpec = Formatter | Callable[[Any], Any] | list[str] | tuple[str, ...] | None


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Engines are cached per connection URL and session settings.
    """
    strategy = get_strategy(options.drivername)
    url = strategy.build_connection_url(options)
    key = f'{url.render_as_string(hide_password=False)}_{options.timeout}_{options.appname}'

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(strategy.get_engine_kwargs(options))
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


class Connection:
    """An open database session identified by an alias.

    Wraps a SQLAlchemy connection and exposes the statement-executor
    operations as methods. Tracks call count and cumulative execution time.
    A Connection is not safe for concurrent use; callers sharing one across
    threads must serialize access.
    """

    def __init__(self, sa_connection: sa.engine.Connection, options: DatabaseOptions) -> None:
        """Initialize a connection wrapper

        Args:
            sa_connection: SQLAlchemy connection object to wrap
            options: The DatabaseOptions used to create this connection
        """
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine
        self.options = options
        self.dbapi_connection = sa_connection.connection
        self.strategy: DatabaseStrategy = get_strategy(options.drivername)
        self.calls = 0
        self.time = 0
        self.in_transaction = False

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'Connection(alias={self.alias!r}, dialect={self.dialect!r})'

    @property
    def alias(self) -> str:
        return self.options.alias

    @property
    def dialect(self) -> str:
        """Return the dialect name ('mysql' or 'sqlite')."""
        return self.strategy.dialect_name

    @property
    def driver_connection(self) -> Any:
        """The raw driver connection (pymysql or sqlite3)."""
        return self.dbapi_connection.driver_connection

    @property
    def closed(self) -> bool:
        return bool(getattr(self.sa_connection, 'closed', False))

    def cursor(self) -> Cursor:
        """Get a wrapped cursor for this connection.

        If the connection is closed, it is reopened and reconfigured.
        """
        if self.closed:
            self.sa_connection = self.engine.connect()
            self.dbapi_connection = self.sa_connection.connection
            self.strategy.configure_connection(self.driver_connection)
            logger.debug(f'Reopened connection {self.alias!r}')
        return get_cursor(self)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def escape_string(self, value: str) -> str:
        """Escape text with the driver's string-escaping facility."""
        return self.strategy.escape_string(self.driver_connection, value)

    def auto_commit(self, enabled: bool) -> None:
        """Turn auto-commit on or off for this session."""
        if enabled:
            self.strategy.enable_autocommit(self.driver_connection)
        else:
            self.strategy.disable_autocommit(self.driver_connection)
        logger.debug(f'Auto-commit {"enabled" if enabled else "disabled"} on {self.alias!r}')

    def commit(self) -> None:
        """Commit the current transaction.

        Auto-commit is left disabled afterwards, so the next mutating
        statement runs inside a new explicit transaction.
        """
        self.driver_connection.commit()
        self.auto_commit(False)

    def rollback(self) -> None:
        """Roll back the current transaction; auto-commit is left disabled."""
        self.driver_connection.rollback()
        self.auto_commit(False)

    def last_insert_id(self) -> int | None:
        """Id generated by the most recent insert on this session."""
        return self.strategy.last_insert_id(self.driver_connection)

    def transaction(self) -> Transaction:
        """Context manager running the enclosed statements in one transaction."""
        return Transaction(self)

    def close(self) -> None:
        """Close the session; uncommitted work is rolled back by SQLAlchemy.

        The Connection stays usable: the next call to `cursor()` opens a new
        session.
        """
        if not self.closed:
            self.sa_connection.close()
            logger.debug(f'Connection {self.alias!r} closed: {self.calls} queries in {self.time:.2f}s '
                         f'(avg: {self.time/max(1, self.calls):.3f}s per query)')

    def select_many(self, sql: str, *args: Any, formatter: FormatSpec = None) -> Any:
        """Execute a query and return every formatted row."""
        return query.select_many(self, sql, *args, formatter=formatter)

    def select_one(self, sql: str, *args: Any, formatter: FormatSpec = None) -> Any | None:
        """Execute a query and return the first formatted row or None."""
        return query.select_one(self, sql, *args, formatter=formatter)

    def select_scalar(self, sql: str, *args: Any) -> Any:
        """Execute a query and return column 0 of row 0."""
        return query.select_scalar(self, sql, *args)

    def select_column(self, sql: str, *args: Any) -> list[Any]:
        """Execute a query and return column 0 of every row."""
        return query.select_column(self, sql, *args)

    def execute(self, sql: str, *args: Any) -> int:
        """Execute a statement and return the affected row count."""
        return query.execute(self, sql, *args)

    def execute_batch(self, sql: str, param_sets: list[Any]) -> list[BatchResult]:
        """Execute one statement once per parameter set."""
        return query.execute_batch(self, sql, param_sets)

    def call_procedure(self, name: str, *args: Any, formatter: FormatSpec = None,
                       positional: bool = False) -> Any:
        """Call a stored procedure and return the rows of its first result set."""
        return query.call_procedure(self, name, *args, formatter=formatter,
                                    positional=positional)

    def select_page(self, draw: Any, sql: str, total_sql: str,
                    params: list[Any] | tuple | None = None,
                    total_params: list[Any] | tuple | None = None,
                    formatter: FormatSpec = None,
                    filtered_sql: str | None = None,
                    filtered_params: list[Any] | tuple | None = None) -> DatatablePage:
        """Build a datatable page from a data query and a total-count query."""
        return query.select_page(self, draw, sql, total_sql, params=params,
                                 total_params=total_params, formatter=formatter,
                                 filtered_sql=filtered_sql,
                                 filtered_params=filtered_params)

    def call_procedure_as_page(self, draw: Any, name: str, *args: Any,
                               formatter: FormatSpec = None,
                               positional: bool = False) -> DatatablePage:
        """Build a datatable page from the three result sets of a procedure."""
        return query.call_procedure_as_page(self, draw, name, *args, formatter=formatter,
                                            positional=positional)


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> Connection:
    """Open a database session.

    Args:
        options: Can be:
                - DatabaseOptions object
                - Name of a setting in `config`
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Raises
        ConnectionFailure: If the driver cannot open the session
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    strategy = get_strategy(options.drivername)
    engine = get_engine_for_options(options)

    try:
        sa_connection = engine.connect()
    except (*DriverError, sa.exc.SQLAlchemyError) as exc:
        message, code = strategy.error_details(exc)
        raise ConnectionFailure(
            f'Could not connect to {options.drivername} database {options.database!r}'
            f' as {options.username!r} on {options.hostname!r}',
            driver_message=message, driver_code=code) from exc

    cn = Connection(sa_connection, options)
    strategy.configure_connection(cn.driver_connection)
    logger.debug(f'Opened {cn.dialect} connection {cn.alias!r}')
    return cn
