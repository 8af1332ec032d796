"""
Type handling for result sets.

This module provides:
- Column: Column metadata from cursor descriptions
- resolve_type: Resolve database type codes to Python types
- SQLite converters for date and datetime columns
"""
import datetime
import decimal
import logging
from typing import Any, Self

import dateutil.parser
from pymysql.constants import FIELD_TYPE

logger = logging.getLogger(__name__)

mysql_types: dict[int, type] = {}

for v in [FIELD_TYPE.TINY, FIELD_TYPE.SHORT, FIELD_TYPE.LONG, FIELD_TYPE.LONGLONG,
          FIELD_TYPE.INT24, FIELD_TYPE.YEAR, FIELD_TYPE.BIT]:
    mysql_types[v] = int

for v in [FIELD_TYPE.FLOAT, FIELD_TYPE.DOUBLE]:
    mysql_types[v] = float

for v in [FIELD_TYPE.DECIMAL, FIELD_TYPE.NEWDECIMAL]:
    mysql_types[v] = decimal.Decimal

for v in [FIELD_TYPE.VARCHAR, FIELD_TYPE.VAR_STRING, FIELD_TYPE.STRING,
          FIELD_TYPE.ENUM, FIELD_TYPE.SET, FIELD_TYPE.JSON]:
    mysql_types[v] = str

for v in [FIELD_TYPE.TINY_BLOB, FIELD_TYPE.MEDIUM_BLOB, FIELD_TYPE.LONG_BLOB,
          FIELD_TYPE.BLOB, FIELD_TYPE.GEOMETRY]:
    mysql_types[v] = bytes

mysql_types[FIELD_TYPE.DATE] = datetime.date
mysql_types[FIELD_TYPE.NEWDATE] = datetime.date
mysql_types[FIELD_TYPE.DATETIME] = datetime.datetime
mysql_types[FIELD_TYPE.TIMESTAMP] = datetime.datetime
mysql_types[FIELD_TYPE.TIME] = datetime.timedelta


sqlite_types: dict[str, type] = {
    'INTEGER': int,
    'INT': int,
    'REAL': float,
    'TEXT': str,
    'BLOB': bytes,
    'NUMERIC': float,
    'BOOLEAN': bool,
    'DATE': datetime.date,
    'DATETIME': datetime.datetime,
    'TIME': datetime.time,
}


def resolve_type(dialect: str, type_code: Any, column_name: str | None = None) -> type | None:
    """Resolve database type code to Python type.

    Priority:
    1. Direct type code lookup
    2. Column name patterns
    3. Unknown (None)
    """
    if isinstance(type_code, type):
        return type_code

    if dialect == 'mysql' and type_code in mysql_types:
        return mysql_types[type_code]

    if dialect == 'sqlite' and isinstance(type_code, str):
        base_type = type_code.split('(')[0].upper()
        if base_type in sqlite_types:
            return sqlite_types[base_type]

    if column_name:
        name_lower = column_name.lower()
        if name_lower.endswith('_id') or name_lower == 'id':
            return int
        if name_lower.endswith(('_datetime', '_at', '_timestamp')):
            return datetime.datetime
        if name_lower.endswith('_date') or name_lower == 'date':
            return datetime.date

    return None


class Column:
    """Database column metadata."""

    def __init__(self,
                 name: str,
                 type_code: Any,
                 python_type: type | None = None,
                 display_size: int | None = None,
                 internal_size: int | None = None,
                 precision: int | None = None,
                 scale: int | None = None,
                 nullable: bool | None = None):
        self.name = name
        self.type_code = type_code
        self.python_type = python_type
        self.display_size = display_size
        self.internal_size = internal_size
        self.precision = precision
        self.scale = scale
        self.nullable = nullable

    @classmethod
    def from_cursor_description(cls, description_item: Any, dialect: str) -> Self:
        """Create a Column from a DB-API 2.0 cursor description item.

        Both drivers report seven-item sequences; sqlite3 fills everything
        but the name with None.
        """
        item = tuple(description_item) + (None,) * (7 - len(description_item))
        name, type_code, display_size, internal_size, precision, scale, nullable = item[:7]
        return cls(
            name=name,
            type_code=type_code,
            python_type=resolve_type(dialect, type_code, column_name=name),
            display_size=display_size,
            internal_size=internal_size,
            precision=precision,
            scale=scale,
            nullable=bool(nullable) if nullable is not None else None,
        )

    def __repr__(self) -> str:
        return (f'Column(name={self.name!r}, type_code={self.type_code!r}, '
                f'python_type={self.python_type.__name__ if self.python_type else None})')

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'type_code': self.type_code,
            'python_type': self.python_type.__name__ if self.python_type else None,
            'display_size': self.display_size,
            'internal_size': self.internal_size,
            'precision': self.precision,
            'scale': self.scale,
            'nullable': self.nullable
        }

    @staticmethod
    def get_names(columns: list[Self]) -> list[str]:
        return [col.name for col in columns]

    @staticmethod
    def get_column_types_dict(columns: list[Self]) -> dict[str, dict]:
        return {col.name: col.to_dict() for col in columns}


def columns_from_cursor_description(description: Any, dialect: str) -> list[Column]:
    """Create Column objects from cursor description."""
    if description is None:
        return []
    return [Column.from_cursor_description(desc, dialect) for desc in description]


def convert_date(val: bytes) -> datetime.date:
    """Convert ISO 8601 date string to date object."""
    return dateutil.parser.isoparse(val.decode()).date()


def convert_datetime(val: bytes) -> datetime.datetime:
    """Convert ISO 8601 datetime string to datetime object."""
    return dateutil.parser.isoparse(val.decode())
