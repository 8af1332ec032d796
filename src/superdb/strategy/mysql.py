"""
MySQL/MariaDB strategy implementation using PyMySQL.

The session is opened with auto-commit enabled, matching the native client
default. PyMySQL interpolates parameters client-side with the ``format``
paramstyle, so placeholders become ``%s`` and literal percent signs are
doubled whenever parameters are supplied.
"""
import logging
from typing import TYPE_CHECKING, Any

import pymysql
import sqlalchemy as sa
from superdb.exceptions import BindingError, DatabaseError, ExecutionError
from superdb.exceptions import PreparationError
from superdb.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from superdb.options import DatabaseOptions

logger = logging.getLogger(__name__)

# Server errors raised while parsing/resolving a statement
PREPARATION_ERRORS = {
    1049,  # ER_BAD_DB_ERROR
    1054,  # ER_BAD_FIELD_ERROR
    1064,  # ER_PARSE_ERROR
    1146,  # ER_NO_SUCH_TABLE
    1149,  # ER_SYNTAX_ERROR
    1305,  # ER_SP_DOES_NOT_EXIST
}

# Server errors caused by the supplied arguments
BINDING_ERRORS = {
    1210,  # ER_WRONG_ARGUMENTS
    1318,  # ER_SP_WRONG_NO_OF_ARGS
}


@register_strategy('mysql')
class MySQLStrategy(DatabaseStrategy):
    """MySQL-specific operations.
    """

    placeholder = '%s'
    found_rows_sql = 'SELECT FOUND_ROWS()'
    backslash_escapes = True

    @property
    def dialect_name(self) -> str:
        return 'mysql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for MySQL via PyMySQL."""
        return sa.URL.create(
            drivername='mysql+pymysql',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query={'charset': options.charset} if options.charset else {},
        )

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for MySQL."""
        connect_args: dict[str, Any] = {'program_name': options.appname} if options.appname else {}
        if options.timeout:
            connect_args['connect_timeout'] = options.timeout
        return {'connect_args': connect_args}

    @classmethod
    def get_required_options(cls) -> list[str]:
        return ['hostname', 'username', 'database']

    def configure_connection(self, raw_conn: Any) -> None:
        self.enable_autocommit(raw_conn)

    def enable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.autocommit(True)

    def disable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.autocommit(False)

    def escape_string(self, raw_conn: Any, value: str) -> str:
        """Escape with the session's escaping rules (honours NO_BACKSLASH_ESCAPES).
        """
        return raw_conn.escape_string(value)

    def last_insert_id(self, raw_conn: Any) -> int | None:
        return raw_conn.insert_id()

    def create_cursor(self, raw_conn: Any) -> Any:
        return raw_conn.cursor(pymysql.cursors.Cursor)

    def error_details(self, exc: BaseException) -> tuple[str, int | str | None]:
        if isinstance(exc, pymysql.MySQLError) and len(exc.args) == 2:
            code, message = exc.args
            return str(message), code
        return super().error_details(exc)

    def classify_error(self, exc: BaseException) -> type[DatabaseError]:
        """Classify by server error code.

        A ``TypeError`` comes from client-side interpolation when the number
        of arguments does not match the placeholders.
        """
        if isinstance(exc, TypeError):
            return BindingError
        _, code = self.error_details(exc)
        if code in PREPARATION_ERRORS:
            return PreparationError
        if code in BINDING_ERRORS:
            return BindingError
        return ExecutionError
