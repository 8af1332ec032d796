"""
Transaction handling for a single connection.
"""
import logging
from typing import TYPE_CHECKING, Any

from superdb import query
from superdb.results import BatchResult

if TYPE_CHECKING:
    from superdb.connection import Connection

logger = logging.getLogger(__name__)


class Transaction:
    """Context manager for running multiple commands in a transaction.

    Auto-commit is turned off on entry. On exit the work is committed, or
    rolled back when the block raised, and auto-commit is turned back on.
    Nested transactions on the same connection are not supported.

    Examples
        with cn.transaction() as tx:
            tx.execute('delete from ...', args)
            tx.execute('update from ...', args)
    """

    def __init__(self, cn: 'Connection') -> None:
        self.connection = cn

    def __enter__(self) -> 'Transaction':
        if self.connection.in_transaction:
            raise RuntimeError('Nested transactions are not supported')
        self.connection.in_transaction = True
        self.connection.auto_commit(False)
        logger.debug(f'Started transaction on {self.connection.alias!r}')
        return self

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        raw_conn = self.connection.driver_connection
        try:
            if exc_type is not None:
                raw_conn.rollback()
                logger.debug(f'Rolled back transaction on {self.connection.alias!r}: {value}')
            else:
                raw_conn.commit()
                logger.debug(f'Committed transaction on {self.connection.alias!r}')
        finally:
            self.connection.auto_commit(True)
            self.connection.in_transaction = False

    def execute(self, sql: str, *args: Any) -> int:
        """Execute SQL within transaction context"""
        return query.execute(self.connection, sql, *args)

    def execute_batch(self, sql: str, param_sets: list[Any]) -> list[BatchResult]:
        return query.execute_batch(self.connection, sql, param_sets)

    def select_many(self, sql: str, *args: Any, formatter: Any = None) -> Any:
        return query.select_many(self.connection, sql, *args, formatter=formatter)

    def select_one(self, sql: str, *args: Any, formatter: Any = None) -> Any | None:
        return query.select_one(self.connection, sql, *args, formatter=formatter)

    def select_scalar(self, sql: str, *args: Any) -> Any:
        return query.select_scalar(self.connection, sql, *args)

    def select_column(self, sql: str, *args: Any) -> list[Any]:
        return query.select_column(self.connection, sql, *args)

    def last_insert_id(self) -> int | None:
        return self.connection.last_insert_id()
