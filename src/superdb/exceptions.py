"""
Database-specific exception classes.
"""
import sqlite3

import pymysql
import sqlalchemy as sa


class DatabaseError(Exception):
    """Base class for all superdb errors.

    Carries the native driver message and code when the error was raised
    while talking to the driver.
    """

    default_message = 'Database error'

    def __init__(self, message: str = '', driver_message: str | None = None,
                 driver_code: int | str | None = None) -> None:
        self.message = message or self.default_message
        self.driver_message = driver_message
        self.driver_code = driver_code
        super().__init__(self._render())

    def _render(self) -> str:
        text = self.message
        if self.driver_message:
            text = f'{text}: {self.driver_message}'
        if self.driver_code is not None:
            text = f'{text} ({self.driver_code})'
        return text


class DuplicateAliasError(DatabaseError):
    """Alias already registered.
    """

    default_message = 'Alias already defined'

    def __init__(self, alias: str) -> None:
        self.alias = alias
        super().__init__(f'{self.default_message} ({alias})')


class AliasNotFoundError(DatabaseError):
    """Alias not registered.
    """

    default_message = 'Alias not found'

    def __init__(self, alias: str) -> None:
        self.alias = alias
        super().__init__(f'{self.default_message} ({alias})')


class ConnectionFailure(DatabaseError):
    """Error establishing a database session.
    """

    default_message = 'Connection error'


class PreparationError(DatabaseError):
    """Statement could not be parsed or prepared.
    """

    default_message = 'Statement could not be prepared'


class BindingError(DatabaseError):
    """Parameters could not be bound to the statement.
    """

    default_message = 'Parameters could not be assigned'


class ExecutionError(DatabaseError):
    """Statement failed during execution.
    """

    default_message = 'Error executing statement'


class NoResultError(DatabaseError):
    """Result set could not be retrieved.
    """

    default_message = 'Error retrieving result'


class InvalidResultError(DatabaseError):
    """Result set does not have the expected shape.
    """

    default_message = 'Invalid result from statement'


class ValidationError(DatabaseError):
    """Error in input validation.
    """

    default_message = 'Invalid input'


DriverError = (
    pymysql.MySQLError,
    sqlite3.Error,
    sa.exc.DBAPIError,
    )
