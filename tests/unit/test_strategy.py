import sqlite3

import pymysql
import pytest
import sqlalchemy as sa
from superdb.exceptions import BindingError, ExecutionError, NoResultError
from superdb.exceptions import PreparationError
from superdb.options import DatabaseOptions
from superdb.strategy import MySQLStrategy, SQLiteStrategy, get_available_dialects
from superdb.strategy import get_strategy, get_strategy_class
from superdb.strategy import is_supported_dialect


def test_registered_dialects():
    assert set(get_available_dialects()) == {'mysql', 'sqlite'}
    assert is_supported_dialect('mysql')
    assert not is_supported_dialect('postgresql')
    assert get_strategy_class('sqlite') is SQLiteStrategy


def test_strategy_instances_are_cached():
    assert get_strategy('mysql') is get_strategy('mysql')
    assert isinstance(get_strategy('mysql'), MySQLStrategy)


def test_unknown_dialect():
    with pytest.raises(ValueError, match='Unsupported dialect'):
        get_strategy('oracle')


class TestMySQLStrategy:

    @pytest.fixture
    def strategy(self):
        return get_strategy('mysql')

    def test_connection_url(self, strategy):
        options = DatabaseOptions(hostname='db.local', username='app', password='p@ss',
                                  database='shop', port=3307)
        url = strategy.build_connection_url(options)

        assert url.drivername == 'mysql+pymysql'
        assert url.host == 'db.local'
        assert url.port == 3307
        assert url.database == 'shop'
        assert url.query['charset'] == 'utf8mb4'
        assert 'p@ss' not in str(url)

    def test_engine_kwargs(self, strategy):
        options = DatabaseOptions(hostname='h', username='u', database='d', timeout=5,
                                  appname='reports')
        connect_args = strategy.get_engine_kwargs(options)['connect_args']
        assert connect_args == {'program_name': 'reports', 'connect_timeout': 5}

    def test_sql_uses_format_paramstyle(self, strategy):
        sql = strategy.standardize_sql("select * from t where a like 'x%' and b = ?")
        assert sql == "select * from t where a like 'x%%' and b = %s"

    def test_percent_kept_without_parameters(self, strategy):
        sql = strategy.standardize_sql("select * from t where a like 'x%'", has_params=False)
        assert sql == "select * from t where a like 'x%'"

    @pytest.mark.parametrize(('exc', 'expected'), [
        (pymysql.err.ProgrammingError(1064, 'You have an error in your SQL syntax'), PreparationError),
        (pymysql.err.ProgrammingError(1146, "Table 'shop.nope' doesn't exist"), PreparationError),
        (pymysql.err.OperationalError(1054, "Unknown column 'x'"), PreparationError),
        (pymysql.err.OperationalError(1318, 'Incorrect number of arguments'), BindingError),
        (pymysql.err.IntegrityError(1062, "Duplicate entry 'a' for key 'name'"), ExecutionError),
        (pymysql.err.OperationalError(2013, 'Lost connection to MySQL server'), ExecutionError),
        (TypeError('not enough arguments for format string'), BindingError),
    ])
    def test_classify_error(self, strategy, exc, expected):
        assert strategy.classify_error(exc) is expected

    def test_translate_error_keeps_driver_details(self, strategy):
        exc = pymysql.err.IntegrityError(1062, "Duplicate entry 'a' for key 'name'")
        error = strategy.translate_error(exc)

        assert isinstance(error, ExecutionError)
        assert error.driver_code == 1062
        assert error.driver_message == "Duplicate entry 'a' for key 'name'"
        assert '1062' in str(error)

    def test_translate_error_with_explicit_class(self, strategy):
        error = strategy.translate_error(pymysql.err.InternalError(1, 'boom'), NoResultError)
        assert isinstance(error, NoResultError)

    def test_translate_unwraps_sqlalchemy_errors(self, strategy):
        orig = pymysql.err.OperationalError(2003, "Can't connect to MySQL server")
        wrapped = sa.exc.OperationalError('connect', {}, orig)
        assert strategy.error_details(wrapped) == ("Can't connect to MySQL server", 2003)

    def test_backslash_escapes_quote(self, strategy):
        assert strategy.count_placeholders("select 'it\\'s ?' from t where a = ?") == 1

    def test_autocommit_and_escape(self, strategy, fake_mysql):
        strategy.configure_connection(fake_mysql)
        assert fake_mysql.autocommit_mode is True
        strategy.disable_autocommit(fake_mysql)
        assert fake_mysql.autocommit_mode is False
        assert strategy.escape_string(fake_mysql, "O'Brien") == "O\\'Brien"


class TestSQLiteStrategy:

    @pytest.fixture
    def strategy(self):
        return get_strategy('sqlite')

    def test_connection_url(self, strategy):
        options = DatabaseOptions(drivername='sqlite', database='/tmp/app.db')
        url = strategy.build_connection_url(options)
        assert url.drivername == 'sqlite'
        assert url.database == '/tmp/app.db'

    def test_no_fast_row_count(self, strategy):
        assert strategy.found_rows_sql is None
        assert strategy.placeholder == '?'

    def test_backslash_is_not_an_escape(self, strategy):
        sql = "select 'C:\\' || ? from t where a = %s"
        assert strategy.count_placeholders(sql) == 2
        assert strategy.standardize_sql(sql) == "select 'C:\\' || ? from t where a = ?"

    def test_escape_doubles_quotes(self, strategy):
        assert strategy.escape_string(None, "O'Brien") == "O''Brien"

    @pytest.mark.parametrize(('exc', 'expected'), [
        (sqlite3.OperationalError('near "SELCT": syntax error'), PreparationError),
        (sqlite3.OperationalError('no such table: nope'), PreparationError),
        (sqlite3.ProgrammingError('Incorrect number of bindings supplied. '
                                  'The current statement uses 1, and there are 2 supplied.'), BindingError),
        (sqlite3.IntegrityError('UNIQUE constraint failed: t.name'), ExecutionError),
        (sqlite3.OperationalError('database is locked'), ExecutionError),
    ])
    def test_classify_error(self, strategy, exc, expected):
        assert strategy.classify_error(exc) is expected
