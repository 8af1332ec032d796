import pytest
import superdb as db
from superdb.exceptions import DuplicateAliasError


@pytest.fixture
def registry():
    registry = db.ConnectionRegistry()
    yield registry
    for alias in registry:
        registry.get(alias).close()


def test_register_and_query(registry):
    cn = registry.register({'drivername': 'sqlite', 'database': ':memory:', 'alias': 'cache'})

    assert cn.alias == 'cache'
    assert registry.get() is cn
    assert registry.get().select_scalar('select 1 + 1') == 2


def test_aliases_are_separate_sessions(registry):
    registry.register({'drivername': 'sqlite', 'database': ':memory:', 'alias': 'a'})
    registry.register({'drivername': 'sqlite', 'database': ':memory:', 'alias': 'b'})

    registry.get('a').execute('create table t (id integer)')
    registry.get('a').execute('insert into t values (?)', 1)

    assert registry.get('a').select_scalar('select count(*) from t') == 1
    assert registry.get('b').select_scalar(
        "select count(*) from sqlite_master where type = 'table'") == 0


def test_duplicate_alias_keeps_first(registry):
    first = registry.register({'drivername': 'sqlite', 'database': ':memory:'})

    with pytest.raises(DuplicateAliasError):
        registry.register({'drivername': 'sqlite', 'database': ':memory:'})

    assert registry.get('default') is first
    assert len(registry) == 1


def test_register_from_config(registry):
    import config

    cn = registry.register('sqlite', config=config)

    assert registry.default_alias == 'local'
    assert cn.dialect == 'sqlite'
    assert cn.select_scalar('select ?', 5) == 5


def test_closed_connection_reopens_on_next_query(registry, tmp_path):
    cn = registry.register({'drivername': 'sqlite', 'database': str(tmp_path / 'app.db'), 'alias': 'app'})
    cn.execute('create table t (id integer)')
    cn.execute('insert into t values (?)', 1)

    cn.close()
    assert cn.closed

    assert registry.get('app').select_scalar('select count(*) from t') == 1
    assert not cn.closed
