"""
Convenience layer over MySQL (PyMySQL) and SQLite connections.

Named connections live in an explicitly constructed ConnectionRegistry.
All executor operations can be called either as:
- Module functions: db.select_many(cn, sql, *args)
- Connection methods: cn.select_many(sql, *args)

The module functions are facades over the Connection methods.
"""
__version__ = '0.1.0'

from typing import Any

from superdb.binding import BindTag, BoundParameter, binding_signature
from superdb.binding import infer_bindings
from superdb.connection import Connection, connect
from superdb.exceptions import AliasNotFoundError, BindingError
from superdb.exceptions import ConnectionFailure, DatabaseError
from superdb.exceptions import DuplicateAliasError, ExecutionError
from superdb.exceptions import InvalidResultError, NoResultError
from superdb.exceptions import PreparationError, ValidationError
from superdb.formatting import FieldEncoder, NoFormat, RowTransform
from superdb.options import DatabaseOptions, iterdict_data_loader
from superdb.options import pandas_numpy_data_loader
from superdb.options import pandas_pyarrow_data_loader
from superdb.registry import ConnectionRegistry
from superdb.results import BatchResult, BatchStatus, DatatablePage
from superdb.transaction import Transaction as transaction
from superdb.types import Column


def select_many(cn: Connection, sql: str, *args: Any, formatter: Any = None) -> Any:
    """Execute a query and return every formatted row.
    """
    return cn.select_many(sql, *args, formatter=formatter)


def select_one(cn: Connection, sql: str, *args: Any, formatter: Any = None) -> Any | None:
    """Execute a query and return the first formatted row, or None.
    """
    return cn.select_one(sql, *args, formatter=formatter)


def select_scalar(cn: Connection, sql: str, *args: Any) -> Any:
    """Execute a query and return column 0 of row 0.

    Raises InvalidResultError if the query returns no row.
    """
    return cn.select_scalar(sql, *args)


def select_column(cn: Connection, sql: str, *args: Any) -> list[Any]:
    """Execute a query and return column 0 of every row.
    """
    return cn.select_column(sql, *args)


def execute(cn: Connection, sql: str, *args: Any) -> int:
    """Execute a SQL statement and return affected row count.
    """
    return cn.execute(sql, *args)


delete = execute
insert = execute
update = execute


def execute_batch(cn: Connection, sql: str, param_sets: list[Any]) -> list[BatchResult]:
    """Execute one statement once per parameter set, isolating failures.
    """
    return cn.execute_batch(sql, param_sets)


def call_procedure(cn: Connection, name: str, *args: Any, formatter: Any = None,
                   positional: bool = False) -> Any:
    """Call a stored procedure and return the rows of its first result set.
    """
    return cn.call_procedure(name, *args, formatter=formatter, positional=positional)


def select_page(cn: Connection, draw: Any, sql: str, total_sql: str,
                params: list[Any] | tuple | None = None,
                total_params: list[Any] | tuple | None = None,
                formatter: Any = None, filtered_sql: str | None = None,
                filtered_params: list[Any] | tuple | None = None) -> DatatablePage:
    """Build a datatable page from a data query and a total-count query.
    """
    return cn.select_page(draw, sql, total_sql, params=params, total_params=total_params,
                          formatter=formatter, filtered_sql=filtered_sql,
                          filtered_params=filtered_params)


def call_procedure_as_page(cn: Connection, draw: Any, name: str, *args: Any,
                           formatter: Any = None, positional: bool = False) -> DatatablePage:
    """Build a datatable page from the three result sets of a procedure.
    """
    return cn.call_procedure_as_page(draw, name, *args, formatter=formatter,
                                     positional=positional)


__all__ = [
    'connect',
    'Connection',
    'ConnectionRegistry',
    'transaction',
    'DatabaseOptions',
    'iterdict_data_loader',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
    'select_many',
    'select_one',
    'select_scalar',
    'select_column',
    'execute',
    'delete',
    'insert',
    'update',
    'execute_batch',
    'call_procedure',
    'select_page',
    'call_procedure_as_page',
    'NoFormat',
    'FieldEncoder',
    'RowTransform',
    'BindTag',
    'BoundParameter',
    'infer_bindings',
    'binding_signature',
    'BatchResult',
    'BatchStatus',
    'DatatablePage',
    'Column',
    'DatabaseError',
    'DuplicateAliasError',
    'AliasNotFoundError',
    'ConnectionFailure',
    'PreparationError',
    'BindingError',
    'ExecutionError',
    'NoResultError',
    'InvalidResultError',
    'ValidationError',
]
