"""
Base strategy interface for database operations.

Defines the abstract base class that all driver-specific strategy implementations
must inherit from. The strategy pattern encapsulates the behaviour that differs
between drivers (URL building, placeholder style, string escaping, auto-commit
toggling, fast row counts, error classification) while the executor works with
any database through this consistent interface.
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from superdb.exceptions import DatabaseError, ExecutionError
from superdb.sql import count_placeholders, standardize_placeholders

if TYPE_CHECKING:
    from superdb.options import DatabaseOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('mysql')
        class MySQLStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for driver-specific operations.
    """

    #: Positional placeholder marker expected by the driver
    placeholder: str = '?'

    #: SQL returning the row count of the previous query, when supported
    found_rows_sql: str | None = None

    #: Backslash escapes the next character inside string literals
    backslash_escapes: bool = False

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'mysql', 'sqlite')."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for this dialect.

        Args:
            options: DatabaseOptions containing connection parameters
        """

    @abstractmethod
    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for this dialect.

        Args:
            options: DatabaseOptions containing connection parameters
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or empty
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or empty')

    @abstractmethod
    def configure_connection(self, raw_conn: Any) -> None:
        """Apply session settings to a freshly opened raw connection.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
        """

    @abstractmethod
    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode on a raw database connection.
        """

    @abstractmethod
    def disable_autocommit(self, raw_conn: Any) -> None:
        """Disable auto-commit mode on a raw database connection.
        """

    @abstractmethod
    def escape_string(self, raw_conn: Any, value: str) -> str:
        """Escape a text value with the driver's escaping facility.
        """

    @abstractmethod
    def last_insert_id(self, raw_conn: Any) -> int | None:
        """Return the id generated by the last insert on this session.
        """

    @abstractmethod
    def create_cursor(self, raw_conn: Any) -> Any:
        """Create a cursor that returns rows as tuples.
        """

    @abstractmethod
    def classify_error(self, exc: BaseException) -> type[DatabaseError]:
        """Map a native driver exception onto the superdb taxonomy.
        """

    @property
    def format_paramstyle(self) -> bool:
        """True when the driver interpolates parameters with ``%``."""
        return self.placeholder == '%s'

    def standardize_sql(self, sql: str, has_params: bool = True) -> str:
        """Convert placeholders to this dialect's style.

        Literal percent signs are doubled only when the driver is going to
        interpolate parameters into the statement.
        """
        return standardize_placeholders(
            sql, self.placeholder,
            escape_percent=self.format_paramstyle and has_params,
            backslash_escapes=self.backslash_escapes)

    def count_placeholders(self, sql: str) -> int:
        """Number of positional placeholders the statement expects."""
        return count_placeholders(sql, backslash_escapes=self.backslash_escapes)

    def error_details(self, exc: BaseException) -> tuple[str, int | str | None]:
        """Extract the native message and code from a driver exception.
        """
        if isinstance(exc, sa.exc.DBAPIError) and exc.orig is not None:
            return self.error_details(exc.orig)
        return str(exc), None

    def translate_error(self, exc: BaseException,
                        error_cls: type[DatabaseError] | None = None) -> DatabaseError:
        """Build the superdb exception for a native driver exception.
        """
        if isinstance(exc, sa.exc.DBAPIError) and exc.orig is not None:
            exc = exc.orig
        error_cls = error_cls or self.classify_error(exc) or ExecutionError
        message, code = self.error_details(exc)
        return error_cls(driver_message=message, driver_code=code)
