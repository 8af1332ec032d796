import pytest
from superdb.exceptions import InvalidResultError
from superdb.formatting import FieldEncoder, NoFormat, RowTransform, encode_text
from superdb.formatting import format_rows, make_formatter, python_encoding
from superdb.types import Column

from libb import attrdict


@pytest.fixture
def columns():
    return [Column('id', None), Column('name', None), Column('city', None)]


@pytest.fixture
def rows():
    return [
        attrdict(id=1, name=b'Jos\xc3\xa9', city='Lyon'),
        attrdict(id=2, name='René', city=b'Z\xfcrich'),
    ]


class TestMakeFormatter:

    def test_none_is_no_format(self):
        assert make_formatter(None) == NoFormat()

    def test_field_names(self):
        assert make_formatter(['name', 'city']) == FieldEncoder(('name', 'city'))
        assert make_formatter({'name'}) == FieldEncoder(('name',))

    def test_callable(self):
        def func(row):
            return row
        assert make_formatter(func) == RowTransform(func)

    def test_formatter_instance_passes_through(self):
        formatter = FieldEncoder(('name',))
        assert make_formatter(formatter) is formatter


def test_no_format_passes_rows_unchanged(rows, columns):
    assert list(format_rows(NoFormat(), rows, columns)) == rows


class TestFieldEncoder:

    def test_encodes_named_fields_in_place(self, rows, columns):
        result = list(format_rows(FieldEncoder(('name',)), rows, columns, 'utf8mb4'))

        assert [r.name for r in result] == ['José', 'René']
        assert result[1].city == b'Z\xfcrich'

    def test_invalid_utf8_falls_back_to_latin1(self, rows, columns):
        result = list(format_rows(FieldEncoder(('city',)), rows, columns, 'utf8mb4'))
        assert result[1].city == 'Zürich'

    def test_tuple_rows_addressed_by_position(self, columns):
        rows = [(1, b'caf\xc3\xa9', 'x')]
        result = list(format_rows(FieldEncoder(('name',)), rows, columns))
        assert result == [(1, 'café', 'x')]

    def test_unknown_field_raises(self, rows, columns):
        with pytest.raises(InvalidResultError, match='missing_field'):
            list(format_rows(FieldEncoder(('name', 'missing_field')), rows, columns))

    def test_unknown_field_raises_on_empty_result(self, columns):
        with pytest.raises(InvalidResultError):
            list(format_rows(FieldEncoder(('missing_field',)), [], columns))


class TestRowTransform:

    def test_replaces_rows(self, rows, columns):
        result = list(format_rows(RowTransform(lambda r: r.id * 10), rows, columns))
        assert result == [10, 20]

    def test_none_drops_row(self, rows, columns):
        def keep_first(row):
            if row.id == 1:
                return {'only': row.id}
        result = list(format_rows(RowTransform(keep_first), rows, columns))
        assert result == [{'only': 1}]


def test_encode_text_non_text_passthrough():
    assert encode_text(None) is None
    assert encode_text(3.5) == 3.5


def test_python_encoding_fallbacks():
    assert python_encoding('utf8') == 'utf-8'
    assert python_encoding('UTF8MB4') == 'utf-8'
    assert python_encoding('no-such-charset') == 'latin-1'
