import decimal

import numpy as np
import pytest
from superdb.binding import BindTag, BoundParameter, binding_signature
from superdb.binding import binding_values, infer_bindings, infer_tag


@pytest.mark.parametrize(('value', 'expected'), [
    (None, BindTag.INTEGER),
    (0, BindTag.INTEGER),
    (-12, BindTag.INTEGER),
    (True, BindTag.INTEGER),
    (np.int64(7), BindTag.INTEGER),
    (1.25, BindTag.FLOAT),
    (np.float64(2.5), BindTag.FLOAT),
    ('text', BindTag.TEXT),
    (decimal.Decimal('1.10'), BindTag.TEXT),
    (b'raw', BindTag.TEXT),
])
def test_infer_tag(value, expected):
    """Tags are derived from the runtime type only"""
    assert infer_tag(value) is expected


def test_signature_has_one_tag_per_parameter():
    params = [1, None, 2.5, 'x', 'y', 3]
    bindings = infer_bindings(params)

    assert len(bindings) == len(params)
    assert binding_signature(bindings) == 'iidssi'


def test_null_bound_as_integer_with_null_payload():
    bindings = infer_bindings([None])
    assert bindings == [BoundParameter(BindTag.INTEGER, None)]


def test_text_is_trimmed():
    bindings = infer_bindings(['  padded value \n'])
    assert bindings[0].value == 'padded value'


def test_non_text_values_rendered_as_text():
    bindings = infer_bindings([decimal.Decimal('3.50')])
    assert bindings[0] == BoundParameter(BindTag.TEXT, '3.50')


def test_escape_applied_after_trimming():
    calls = []

    def escape(value):
        calls.append(value)
        return value.replace("'", "\\'")

    bindings = infer_bindings([" O'Brien ", 5], escape=escape)

    assert calls == ["O'Brien"]
    assert binding_values(bindings) == ("O\\'Brien", 5)


def test_escape_not_applied_to_numbers_or_null():
    def escape(value):
        raise AssertionError('escape called for non-text value')

    bindings = infer_bindings([None, 1, 2.0], escape=escape)
    assert binding_values(bindings) == (None, 1, 2.0)


@pytest.mark.parametrize('payload', [b' raw\x00bytes ', bytearray(b'abc')])
def test_binary_bound_unchanged(payload):
    def escape(value):
        raise AssertionError('escape called for binary value')

    bindings = infer_bindings([payload], escape=escape)

    assert bindings == [BoundParameter(BindTag.TEXT, payload)]
    assert binding_values(bindings)[0] is payload


@pytest.mark.parametrize('params', [None, [], ()])
def test_no_parameters(params):
    bindings = infer_bindings(params)
    assert bindings == []
    assert binding_signature(bindings) == ''
    assert binding_values(bindings) == ()
