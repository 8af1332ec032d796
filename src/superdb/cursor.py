"""
Cursor wrapper implementing the prepare, bind, execute and drain steps.

Implements the parts of the Python DB-API 2.0 specification (PEP-249) the
executor needs, translating native driver exceptions into the superdb
taxonomy at this boundary.
"""
import logging
import time
from collections.abc import Iterator
from functools import wraps
from typing import Any

from superdb.exceptions import DriverError, NoResultError
from superdb.types import Column, columns_from_cursor_description

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL statements and timing."""
    @wraps(func)
    def wrapper(self, operation: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{operation}\nargs: {len(args[0]) if args else 0} parameter(s)')
        try:
            return func(self, operation, *args, **kwargs)
        except Exception as exc:
            logger.debug(f'Statement failed: {exc}')
            raise
        finally:
            elapsed = time.time() - start
            self.connection.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Cursor:
    """Unified cursor class for all supported drivers.

    Uses the strategy pattern to handle dialect-specific behaviours like
    placeholder conversion (``?`` vs ``%s``) and error classification.
    """

    def __init__(self, cursor: Any, connection: Any, strategy: Any) -> None:
        """Initialize cursor wrapper.

        Args:
            cursor: The underlying DBAPI cursor
            connection: The Connection that created this cursor
            strategy: Database strategy of the connection
        """
        self.dbapi_cursor = cursor
        self.connection = connection
        self.strategy = strategy

    def __getattr__(self, name: str) -> Any:
        """Delegate members to underlying cursor."""
        return getattr(self.dbapi_cursor, name)

    def __iter__(self) -> Iterator:
        """Return iterator for cursor results."""
        return IterChunk(self)

    def __enter__(self) -> 'Cursor':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def description(self) -> list[tuple] | None:
        """Column descriptions for the current result set."""
        return self.dbapi_cursor.description

    @property
    def columns(self) -> list[Column]:
        """Column metadata for the current result set."""
        return columns_from_cursor_description(self.description, self.strategy.dialect_name)

    @property
    def rowcount(self) -> int:
        """Number of rows produced/affected by last operation."""
        return self.dbapi_cursor.rowcount

    def close(self) -> None:
        """Close cursor."""
        try:
            self.dbapi_cursor.close()
        except DriverError as exc:
            logger.debug(f'Error closing cursor: {exc}')

    @dumpsql
    def execute(self, operation: str, params: tuple = ()) -> int:
        """Execute a statement with already-bound positional parameters.

        Returns the driver's row count for the statement.
        """
        params = tuple(params or ())
        sql = self.strategy.standardize_sql(operation, has_params=bool(params))
        try:
            if params:
                self.dbapi_cursor.execute(sql, params)
            else:
                self.dbapi_cursor.execute(sql)
        except (*DriverError, TypeError) as exc:
            raise self.strategy.translate_error(exc) from exc
        return self.dbapi_cursor.rowcount

    def fetchone(self) -> tuple | None:
        """Fetch next row."""
        try:
            return self.dbapi_cursor.fetchone()
        except DriverError as exc:
            raise self.strategy.translate_error(exc, NoResultError) from exc

    def fetchmany(self, size: int) -> list[tuple]:
        """Fetch next set of rows."""
        try:
            return self.dbapi_cursor.fetchmany(size)
        except DriverError as exc:
            raise self.strategy.translate_error(exc, NoResultError) from exc

    def fetchall(self) -> list[tuple]:
        """Fetch all remaining rows."""
        try:
            return self.dbapi_cursor.fetchall()
        except DriverError as exc:
            raise self.strategy.translate_error(exc, NoResultError) from exc

    def nextset(self) -> bool | None:
        """Move to next result set.

        Returns None for drivers that don't support multiple result sets.
        """
        if not hasattr(self.dbapi_cursor, 'nextset'):
            return None
        try:
            return self.dbapi_cursor.nextset()
        except NotImplementedError:
            return None
        except DriverError as exc:
            raise self.strategy.translate_error(exc) from exc

    def drain(self) -> None:
        """Discard every remaining result set so the session can be reused."""
        while self.nextset():
            pass


def IterChunk(cursor: Cursor, size: int = 5000) -> Iterator[tuple]:
    """Iterate through cursor results in chunks."""
    while True:
        chunked = cursor.fetchmany(size)
        if not chunked:
            break
        yield from chunked


def get_cursor(cn: Any) -> Cursor:
    """Get a wrapped tuple cursor for a connection."""
    strategy = cn.strategy
    return Cursor(strategy.create_cursor(cn.driver_connection), cn, strategy)
