from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import wraps
from typing import Any

import pandas as pd
import pyarrow as pa
from superdb.strategy import get_available_dialects, get_strategy_class
from superdb.strategy import is_supported_dialect
from superdb.types import Column

from libb import ConfigOptions, scriptname

__all__ = [
    'DatabaseOptions',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
    'iterdict_data_loader',
    'use_iterdict_data_loader',
]


def use_iterdict_data_loader(func):
    """Temporarily use default list loader over user-specified loader"""

    @wraps(func)
    def inner(*args, **kwargs):
        cn = args[0]

        original_data_loader = cn.options.data_loader
        cn.options.data_loader = iterdict_data_loader

        try:
            return func(*args, **kwargs)
        finally:
            cn.options.data_loader = original_data_loader

    return inner


def iterdict_data_loader(data, columns, **kwargs) -> list:
    """Minimal data loader.

    Returns the formatted rows as a list, untouched.
    """
    if not data:
        return []
    return list(data)


def _empty_dataframe(columns) -> pd.DataFrame:
    """Create empty DataFrame with column metadata."""
    df = pd.DataFrame(columns=Column.get_names(columns))
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def _is_mapping_rows(data) -> bool:
    return isinstance(data[0], Mapping)


def pandas_numpy_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    Includes type information in the DataFrame.attrs attribute.
    """
    if not data:
        return _empty_dataframe(columns)

    data = list(data)
    if _is_mapping_rows(data):
        df = pd.DataFrame.from_records(data)
    else:
        df = pd.DataFrame.from_records(data, columns=Column.get_names(columns))
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def pandas_pyarrow_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """PyArrow-based pandas DataFrame loader.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    """
    if not data:
        return _empty_dataframe(columns)

    data = list(data)
    if _is_mapping_rows(data):
        column_names = list(data[0].keys())
        columns_data = [[row[col] for row in data] for col in column_names]
    else:
        column_names = Column.get_names(columns)
        columns_data = [[row[i] for row in data] for i in range(len(column_names))]
    df = pa.table(columns_data, names=column_names).to_pandas(types_mapper=pd.ArrowDtype)
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `mysql`, `sqlite`

    - alias: Registry alias for the connection (default: 'default')
    - charset: Session character set for MySQL (default: utf8mb4)
    - escape_strings: Escape text parameters with the driver before binding
    - data_loader: Shapes multi-row results (default: list of rows)
    """
    drivername: str = 'mysql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    charset: str = 'utf8mb4'
    alias: str = 'default'
    escape_strings: bool = True
    appname: str = None
    data_loader: Callable[..., Any] | None = None

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        if not self.alias or not isinstance(self.alias, str):
            raise ValueError('alias must be a non-empty string')
        self.appname = self.appname or scriptname() or 'python_console'
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)
        if self.data_loader is None:
            self.data_loader = iterdict_data_loader

    def __repr__(self) -> str:
        return (f'DatabaseOptions(drivername={self.drivername!r}, hostname={self.hostname!r}, '
                f'database={self.database!r}, username={self.username!r}, alias={self.alias!r})')
