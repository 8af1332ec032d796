"""
Statement executor operations.

Every operation runs the same pipeline on a fresh cursor: standardize
placeholders, check arity, infer bindings, execute, drain the remaining
result sets and close the cursor. The operations differ only in how the
result is reshaped.
"""
import logging
from typing import TYPE_CHECKING, Any, Union

from superdb.binding import binding_signature, binding_values, infer_bindings
from superdb.cursor import Cursor
from superdb.exceptions import BindingError, ExecutionError, InvalidResultError
from superdb.exceptions import PreparationError, ValidationError
from superdb.formatting import format_rows, make_formatter
from superdb.options import use_iterdict_data_loader
from superdb.results import BatchResult, BatchStatus, DatatablePage
from superdb.sql import build_call_sql
from superdb.types import Column
from superdb.utils import unwrap_args

from libb import attrdict

if TYPE_CHECKING:
    from superdb.connection import Connection

SqlParams = Union[list[Any], tuple[Any, ...]]

logger = logging.getLogger(__name__)

__all__ = [
    'select_many',
    'select_one',
    'select_scalar',
    'select_column',
    'execute',
    'execute_batch',
    'call_procedure',
    'select_page',
    'call_procedure_as_page',
]


def bind_parameters(cn: 'Connection', sql: str, params: tuple) -> tuple:
    """Check arity and return the bound payloads for a statement.

    Raises
        BindingError: If the placeholder count differs from the parameter count
    """
    expected = cn.strategy.count_placeholders(sql)
    if expected != len(params):
        raise BindingError(f'Statement expects {expected} parameter(s), got {len(params)}')
    escape = cn.escape_string if cn.options.escape_strings else None
    bindings = infer_bindings(params, escape)
    if bindings:
        logger.debug(f'Binding signature: {binding_signature(bindings)}')
    return binding_values(bindings)


def _as_params(param_set: Any) -> tuple:
    if param_set is None:
        return ()
    if isinstance(param_set, (list, tuple)):
        return tuple(param_set)
    return (param_set,)


def _fetch_result(cursor: Cursor, positional: bool = False) -> tuple[list[Any], list[Column]]:
    """Drain the current result set into rows plus its column metadata.

    Statements without a result set produce no rows and no columns.
    """
    if cursor.description is None:
        return [], []
    columns = cursor.columns
    rows = cursor.fetchall()
    if positional:
        return [tuple(row) for row in rows], columns
    names = Column.get_names(columns)
    return [attrdict(zip(names, row)) for row in rows], columns


def _first_value(cursor: Cursor, what: str) -> Any:
    if cursor.description is None:
        raise InvalidResultError(f'Missing {what} result set')
    row = cursor.fetchone()
    if row is None:
        raise InvalidResultError(f'No row in {what} result set')
    return row[0]


def _select(cn: 'Connection', sql: str, params: tuple, formatter: Any = None,
            positional: bool = False) -> tuple[list[Any], list[Column]]:
    """Run a query and return the formatted rows with their column metadata."""
    values = bind_parameters(cn, sql, params)
    with cn.cursor() as cursor:
        cursor.execute(sql, values)
        rows, columns = _fetch_result(cursor, positional)
        cursor.drain()
    return list(format_rows(make_formatter(formatter), rows, columns, cn.options.charset)), columns


def select_many(cn: 'Connection', sql: str, *args: Any, formatter: Any = None) -> Any:
    """Execute a query and return every formatted row.

    Args:
        cn: Database connection
        sql: Query text with ``?`` placeholders
        *args: Query parameters (a single list/tuple is unwrapped)
        formatter: Field names to normalize, a row transform, or None

    Returns
        Output of the connection's data loader; with the default loader, a
        list of rows (empty when nothing matches)
    """
    data, columns = _select(cn, sql, unwrap_args(args), formatter)
    logger.debug(f'Select query returned {len(data)} row(s)')
    return cn.options.data_loader(data, columns)


@use_iterdict_data_loader
def select_one(cn: 'Connection', sql: str, *args: Any, formatter: Any = None) -> Any | None:
    """Execute a query and return its first formatted row, or None.

    Extra rows are ignored.
    """
    data = select_many(cn, sql, *args, formatter=formatter)
    if data:
        return data[0]
    return None


def select_scalar(cn: 'Connection', sql: str, *args: Any) -> Any:
    """Execute a query and return column 0 of row 0.

    Raises
        InvalidResultError: If the query returns no row
    """
    values = bind_parameters(cn, sql, unwrap_args(args))
    with cn.cursor() as cursor:
        cursor.execute(sql, values)
        if cursor.description is None:
            raise InvalidResultError('Scalar query returned no result set')
        row = cursor.fetchone()
        cursor.drain()
    if row is None:
        raise InvalidResultError('Scalar query returned no row')
    return row[0]


def select_column(cn: 'Connection', sql: str, *args: Any) -> list[Any]:
    """Execute a query and return column 0 of every row.

    Use this when you need just a simple list of values from a query.
    """
    data, _ = _select(cn, sql, unwrap_args(args), positional=True)
    return [row[0] for row in data]


def execute(cn: 'Connection', sql: str, *args: Any) -> int:
    """Execute a statement and return the affected row count.

    Nothing is committed here: with auto-commit disabled the caller owns
    the transaction.

    >>> import superdb
    >>> cn = superdb.connect({'drivername': 'sqlite', 'database': ':memory:'})
    >>> execute(cn, 'CREATE TABLE test (id INTEGER, name TEXT)')
    -1
    >>> execute(cn, 'INSERT INTO test VALUES (?, ?)', 1, 'test')
    1
    """
    values = bind_parameters(cn, sql, unwrap_args(args))
    with cn.cursor() as cursor:
        rowcount = cursor.execute(sql, values)
        cursor.drain()
    return rowcount


def execute_batch(cn: 'Connection', sql: str, param_sets: list[Any]) -> list[BatchResult]:
    """Execute one statement once per parameter set.

    Binding and execution failures are recorded in that entry's BatchResult
    and processing continues with the next set. A statement that cannot be
    prepared fails the whole call.

    Returns
        One BatchResult per parameter set, in input order
    """
    if param_sets is None:
        raise ValidationError('param_sets is required')
    results = []
    with cn.cursor() as cursor:
        for index, param_set in enumerate(param_sets):
            try:
                values = bind_parameters(cn, sql, _as_params(param_set))
                rowcount = cursor.execute(sql, values)
                cursor.drain()
            except PreparationError:
                raise
            except (BindingError, ExecutionError) as exc:
                logger.debug(f'Batch entry {index} failed: {exc}')
                results.append(BatchResult(index, BatchStatus.ERROR, exc.driver_message or str(exc)))
                continue
            results.append(BatchResult(index, BatchStatus.OK, rowcount))
    logger.debug(f'Batch executed {len(results)} parameter set(s), '
                 f'{sum(1 for r in results if not r.ok)} failed')
    return results


def call_procedure(cn: 'Connection', name: str, *args: Any, formatter: Any = None,
                   positional: bool = False) -> Any:
    """Call a stored procedure and return the rows of its first result set.

    The ``CALL`` statement is synthesized from the parameter count. Any
    further result sets are drained and discarded.

    Args:
        cn: Database connection
        name: Procedure name, optionally schema-qualified
        *args: Procedure arguments (a single list/tuple is unwrapped)
        formatter: Field names to normalize, a row transform, or None
        positional: Return rows as tuples instead of mappings
    """
    params = unwrap_args(args)
    sql = build_call_sql(name, len(params))
    data, columns = _select(cn, sql, params, formatter, positional)
    return cn.options.data_loader(data, columns)


def select_page(cn: 'Connection', draw: Any, sql: str, total_sql: str,
                params: SqlParams | None = None, total_params: SqlParams | None = None,
                formatter: Any = None, filtered_sql: str | None = None,
                filtered_params: SqlParams | None = None) -> DatatablePage:
    """Build a datatable page from a data query and a total-count query.

    The filtered count comes from the dialect's fast row count, which on
    MySQL requires the data query to use ``SQL_CALC_FOUND_ROWS``. Pass
    ``filtered_sql`` to count with an explicit query instead; dialects
    without a fast row count require it.
    """
    found_rows_sql = cn.strategy.found_rows_sql
    if filtered_sql is None and not found_rows_sql:
        raise ValidationError(f'{cn.dialect} has no fast row count; filtered_sql is required')

    data, _ = _select(cn, sql, _as_params(params), formatter)
    if filtered_sql is not None:
        records_filtered = select_scalar(cn, filtered_sql, _as_params(filtered_params))
    else:
        records_filtered = select_scalar(cn, found_rows_sql)
    records_total = select_scalar(cn, total_sql, _as_params(total_params))

    return DatatablePage(draw, data, records_filtered, records_total)


def call_procedure_as_page(cn: 'Connection', draw: Any, name: str, *args: Any,
                           formatter: Any = None, positional: bool = False) -> DatatablePage:
    """Build a datatable page from one stored-procedure call.

    The procedure must return three result sets in order: the page rows,
    a one-row filtered count and a one-row total count.

    Raises
        InvalidResultError: If a count result set is missing or empty
    """
    params = unwrap_args(args)
    sql = build_call_sql(name, len(params))
    values = bind_parameters(cn, sql, params)
    with cn.cursor() as cursor:
        cursor.execute(sql, values)
        if cursor.description is None:
            raise InvalidResultError('Missing data result set')
        rows, columns = _fetch_result(cursor, positional)
        if not cursor.nextset():
            raise InvalidResultError('Missing filtered count result set')
        records_filtered = _first_value(cursor, 'filtered count')
        if not cursor.nextset():
            raise InvalidResultError('Missing total count result set')
        records_total = _first_value(cursor, 'total count')
        cursor.drain()

    data = list(format_rows(make_formatter(formatter), rows, columns, cn.options.charset))
    return DatatablePage(draw, data, records_filtered, records_total)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
