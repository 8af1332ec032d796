"""
SQLite-specific strategy implementation.

SQLite has no client-side escaping function and no fast row count: text
escaping doubles single quotes (standard SQL quoting) and paginated queries
must supply their own filtered-count statement.
"""
import json
import logging
import re
import sqlite3
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from superdb.exceptions import BindingError, DatabaseError, ExecutionError
from superdb.exceptions import PreparationError
from superdb.strategy.base import DatabaseStrategy, register_strategy
from superdb.types import convert_date, convert_datetime

if TYPE_CHECKING:
    from superdb.options import DatabaseOptions

logger = logging.getLogger(__name__)

_PREPARE_FAILURE_RE = re.compile(
    r'syntax error|incomplete input|no such (table|column|function)|unrecognized token',
    re.IGNORECASE)

_BINDING_FAILURE_RE = re.compile(
    r'incorrect number of bindings|error binding parameter|type .* is not supported',
    re.IGNORECASE)


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    placeholder = '?'
    found_rows_sql = None

    @property
    def dialect_name(self) -> str:
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        connect_args: dict[str, Any] = {
            'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
        }
        if options.timeout:
            connect_args['timeout'] = options.timeout
        return {'connect_args': connect_args}

    @classmethod
    def get_required_options(cls) -> list[str]:
        return ['database']

    def configure_connection(self, raw_conn: Any) -> None:
        """Register converters and switch the session to auto-commit.

        SQLite needs adapters to handle complex types like dict and list,
        and converters to handle date/datetime coming from the database.
        """
        sqlite3.register_adapter(dict, json.dumps)
        sqlite3.register_adapter(list, json.dumps)
        sqlite3.register_converter('date', convert_date)
        sqlite3.register_converter('datetime', convert_datetime)
        self.enable_autocommit(raw_conn)

    def enable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.isolation_level = None

    def disable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.isolation_level = 'DEFERRED'

    def escape_string(self, raw_conn: Any, value: str) -> str:
        return value.replace("'", "''")

    def last_insert_id(self, raw_conn: Any) -> int | None:
        return raw_conn.execute('SELECT last_insert_rowid()').fetchone()[0]

    def create_cursor(self, raw_conn: Any) -> Any:
        return raw_conn.cursor()

    def error_details(self, exc: BaseException) -> tuple[str, int | str | None]:
        if isinstance(exc, sqlite3.Error):
            return str(exc), getattr(exc, 'sqlite_errorname', None)
        return super().error_details(exc)

    def classify_error(self, exc: BaseException) -> type[DatabaseError]:
        message = str(exc)
        if isinstance(exc, (sqlite3.ProgrammingError, sqlite3.InterfaceError)) \
                and _BINDING_FAILURE_RE.search(message):
            return BindingError
        if isinstance(exc, sqlite3.OperationalError) and _PREPARE_FAILURE_RE.search(message):
            return PreparationError
        return ExecutionError
