"""
Bind-parameter type inference.

Every positional parameter is tagged from its runtime type before it is
bound to a prepared statement:

- ``None`` gets the integer tag with a ``None`` payload
- integral numbers (``int``, ``bool``, numpy integers) get ``i``
- real numbers (``float``, numpy floats) get ``d``
- everything else is rendered as text (``s``), stripped of surrounding
  whitespace and passed through the dialect's string escaping
- ``bytes`` and ``bytearray`` keep the ``s`` tag but are bound unchanged;
  the driver sends them as a binary string

The null-as-integer rule mirrors the native client's convention for an
unbound slot, not a numeric default.
"""
import enum
import logging
import numbers
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

__all__ = [
    'BindTag',
    'BoundParameter',
    'infer_bindings',
    'binding_signature',
    'binding_values',
]


class BindTag(enum.StrEnum):
    """Type tag of a bound parameter."""

    INTEGER = 'i'
    FLOAT = 'd'
    TEXT = 's'


@dataclass(frozen=True)
class BoundParameter:
    """One (tag, value) pair of a binding signature."""

    tag: BindTag
    value: Any


def _identity(value: str) -> str:
    return value


def infer_tag(value: Any) -> BindTag:
    """Type tag for a single value.

    >>> infer_tag(None), infer_tag(3), infer_tag(2.5), infer_tag('x')
    (<BindTag.INTEGER: 'i'>, <BindTag.INTEGER: 'i'>, <BindTag.FLOAT: 'd'>, <BindTag.TEXT: 's'>)
    """
    if value is None or isinstance(value, numbers.Integral):
        return BindTag.INTEGER
    if isinstance(value, numbers.Real):
        return BindTag.FLOAT
    return BindTag.TEXT


def infer_bindings(params: Iterable[Any] | None,
                   escape: Callable[[str], str] | None = None) -> list[BoundParameter]:
    """Build the binding signature for a parameter sequence.

    Args:
        params: Positional parameter values, or None
        escape: String escaping function of the driver; identity if omitted

    Returns
        One BoundParameter per input value, in input order

    >>> [(b.tag.value, b.value) for b in infer_bindings([None, 1, 1.5, '  a  '])]
    [('i', None), ('i', 1), ('d', 1.5), ('s', 'a')]
    """
    if not params:
        return []
    escape = escape or _identity
    bindings = []
    for value in params:
        tag = infer_tag(value)
        if tag is BindTag.TEXT and not isinstance(value, (bytes, bytearray)):
            value = escape(str(value).strip())
        bindings.append(BoundParameter(tag, value))
    return bindings


def binding_signature(bindings: Iterable[BoundParameter]) -> str:
    """Concatenated tag characters, e.g. ``'iids'``.
    """
    return ''.join(b.tag.value for b in bindings)


def binding_values(bindings: Iterable[BoundParameter]) -> tuple:
    """Bound payloads in order, ready for ``cursor.execute``.
    """
    return tuple(b.value for b in bindings)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
