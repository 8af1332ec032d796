"""
Row formatting applied to decoded result rows.

A formatter is one of three cases:

- ``NoFormat``: rows pass through unchanged
- ``FieldEncoder``: the named fields of every row are text-normalized in place
- ``RowTransform``: every row is replaced by ``func(row)``; a ``None`` return
  drops the row from the output

Public operations accept ``None``, an iterable of field names, a callable or
a formatter instance and coerce it with ``make_formatter``.
"""
import codecs
import logging
import unicodedata
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from superdb.exceptions import InvalidResultError
from superdb.types import Column

logger = logging.getLogger(__name__)

__all__ = [
    'Formatter',
    'NoFormat',
    'FieldEncoder',
    'RowTransform',
    'make_formatter',
    'format_rows',
    'encode_text',
]

FALLBACK_ENCODING = 'latin-1'


class Formatter:
    """Base of the formatter variants."""


@dataclass(frozen=True)
class NoFormat(Formatter):
    """Leave rows untouched."""


@dataclass(frozen=True)
class FieldEncoder(Formatter):
    """Normalize the text of the named fields."""

    fields: tuple[str, ...]


@dataclass(frozen=True)
class RowTransform(Formatter):
    """Replace each row with ``func(row)``; ``None`` drops the row."""

    func: Callable[[Any], Any]


def make_formatter(spec: Formatter | Callable | Iterable[str] | str | None) -> Formatter:
    """Coerce a caller-supplied format specification into a Formatter.

    >>> make_formatter(None)
    NoFormat()
    >>> make_formatter(['name', 'city'])
    FieldEncoder(fields=('name', 'city'))
    >>> make_formatter('name')
    FieldEncoder(fields=('name',))
    """
    if spec is None:
        return NoFormat()
    if isinstance(spec, Formatter):
        return spec
    if callable(spec):
        return RowTransform(spec)
    if isinstance(spec, str):
        return FieldEncoder((spec,))
    return FieldEncoder(tuple(spec))


def python_encoding(charset: str | None) -> str:
    """Map a server charset name to a Python codec name.

    >>> python_encoding('utf8mb4'), python_encoding('cp1252'), python_encoding(None)
    ('utf-8', 'cp1252', 'utf-8')
    """
    if not charset or charset.lower().startswith('utf8'):
        return 'utf-8'
    try:
        return codecs.lookup(charset).name
    except LookupError:
        return FALLBACK_ENCODING


def encode_text(value: Any, encoding: str = 'utf-8') -> Any:
    """Normalize a text value to NFC unicode.

    Byte strings are decoded with ``encoding``, falling back to latin-1 when
    they are not valid in that encoding. Non-text values are returned as-is.

    >>> encode_text(b'caf\\xe9')
    'café'
    >>> encode_text('cafe\\u0301') == 'caf\\xe9'
    True
    >>> encode_text(42)
    42
    """
    if isinstance(value, (bytes, bytearray)):
        try:
            value = bytes(value).decode(encoding)
        except UnicodeDecodeError:
            value = bytes(value).decode(FALLBACK_ENCODING)
    if isinstance(value, str):
        return unicodedata.normalize('NFC', value)
    return value


def _field_positions(fields: tuple[str, ...], columns: list[Column]) -> dict[str, int]:
    names = Column.get_names(columns)
    missing = [f for f in fields if f not in names]
    if missing:
        raise InvalidResultError(f'Fields not in result set: {", ".join(missing)}')
    return {f: names.index(f) for f in fields}


def _encode_fields(row: Any, positions: dict[str, int], encoding: str) -> Any:
    if isinstance(row, tuple):
        values = list(row)
        for pos in positions.values():
            values[pos] = encode_text(values[pos], encoding)
        return tuple(values)
    for name in positions:
        row[name] = encode_text(row[name], encoding)
    return row


def format_rows(formatter: Formatter, rows: Iterable[Any], columns: list[Column],
                charset: str | None = None) -> Iterator[Any]:
    """Apply a formatter to decoded rows.

    Field names are checked against the result columns before the first row
    is formatted, so an unknown field fails even on an empty result.
    """
    match formatter:
        case RowTransform(func=func):
            for row in rows:
                formatted = func(row)
                if formatted is not None:
                    yield formatted
        case FieldEncoder(fields=fields):
            positions = _field_positions(fields, columns)
            encoding = python_encoding(charset)
            for row in rows:
                yield _encode_fields(row, positions, encoding)
        case _:
            yield from rows


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
