import datetime
import decimal

from pymysql.constants import FIELD_TYPE
from superdb.types import Column, columns_from_cursor_description, convert_date
from superdb.types import convert_datetime, resolve_type


def test_resolve_mysql_type_codes():
    assert resolve_type('mysql', FIELD_TYPE.LONG) is int
    assert resolve_type('mysql', FIELD_TYPE.NEWDECIMAL) is decimal.Decimal
    assert resolve_type('mysql', FIELD_TYPE.DATETIME) is datetime.datetime
    assert resolve_type('mysql', FIELD_TYPE.VAR_STRING) is str


def test_resolve_sqlite_declared_types():
    assert resolve_type('sqlite', 'INTEGER') is int
    assert resolve_type('sqlite', 'varchar(20)') is None
    assert resolve_type('sqlite', 'TEXT') is str


def test_resolve_by_column_name():
    assert resolve_type('sqlite', None, 'user_id') is int
    assert resolve_type('sqlite', None, 'created_at') is datetime.datetime
    assert resolve_type('sqlite', None, 'trade_date') is datetime.date
    assert resolve_type('sqlite', None, 'name') is None


def test_from_cursor_description_mysql():
    col = Column.from_cursor_description(('price', FIELD_TYPE.NEWDECIMAL, 10, 12, 10, 2, False), 'mysql')

    assert col.name == 'price'
    assert col.python_type is decimal.Decimal
    assert (col.precision, col.scale) == (10, 2)
    assert col.nullable is False
    assert col.to_dict()['python_type'] == 'Decimal'


def test_from_short_description_item():
    col = Column.from_cursor_description(('id', None), 'sqlite')
    assert col.python_type is int
    assert col.nullable is None


def test_columns_from_cursor_description():
    description = [('id', None, None, None, None, None, None),
                   ('name', None, None, None, None, None, None)]
    columns = columns_from_cursor_description(description, 'sqlite')

    assert Column.get_names(columns) == ['id', 'name']
    assert set(Column.get_column_types_dict(columns)) == {'id', 'name'}
    assert columns_from_cursor_description(None, 'sqlite') == []


def test_sqlite_converters():
    assert convert_date(b'2024-03-01') == datetime.date(2024, 3, 1)
    assert convert_datetime(b'2024-03-01 10:15:00') == datetime.datetime(2024, 3, 1, 10, 15)
