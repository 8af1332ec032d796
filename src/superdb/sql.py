"""
SQL text helpers: placeholder detection and conversion, procedure calls.

Callers write positional placeholders as ``?`` (``%s`` is accepted as well).
Placeholders inside string literals, quoted identifiers and comments are
ignored. Dialects using the ``format`` paramstyle also need every literal
percent sign doubled once parameters are supplied.
"""
import logging
import re

from superdb.exceptions import ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    'count_placeholders',
    'standardize_placeholders',
    'make_placeholders',
    'build_call_sql',
]

_TOKEN_PATTERN = r"""
    (?P<literal>
        '(?:{single})*'
      | "(?:{double})*"
      | `[^`]*`
    )
  | (?P<comment>--[^\n]*|/\*.*?\*/)
  | (?P<placeholder>\?|%s)
  | (?P<percent>%%|%)
"""

# MySQL treats a backslash inside a literal as an escape character
_TOKEN_RE = re.compile(
    _TOKEN_PATTERN.format(single=r"[^'\\]|\\.|''", double=r'[^"\\]|\\.|""'),
    re.VERBOSE | re.DOTALL)

# Standard SQL quoting (SQLite): only a doubled quote escapes
_STANDARD_TOKEN_RE = re.compile(
    _TOKEN_PATTERN.format(single=r"[^']|''", double=r'[^"]|""'),
    re.VERBOSE | re.DOTALL)

_PROCEDURE_NAME_RE = re.compile(r'^[A-Za-z_][\w$]*(\.[A-Za-z_][\w$]*)?$')


def _token_re(backslash_escapes: bool) -> re.Pattern:
    return _TOKEN_RE if backslash_escapes else _STANDARD_TOKEN_RE


def count_placeholders(sql: str, backslash_escapes: bool = True) -> int:
    """Count positional placeholders outside literals and comments.

    With ``backslash_escapes`` off a backslash is an ordinary character
    inside string literals, as in standard SQL.

    >>> count_placeholders('select * from t where a = ? and b = %s')
    2
    >>> count_placeholders("select '?' from t -- where x = ?")
    0
    >>> count_placeholders("select 'a\\\\' || ?", backslash_escapes=False)
    1
    """
    tokens = _token_re(backslash_escapes).finditer(sql or '')
    return sum(1 for m in tokens if m.lastgroup == 'placeholder')


def _double_percent(text: str) -> str:
    return re.sub(r'%%|%', '%%', text)


def standardize_placeholders(sql: str, placeholder: str = '?',
                             escape_percent: bool = False,
                             backslash_escapes: bool = True) -> str:
    """Rewrite positional placeholders to the dialect's marker.

    Args:
        sql: SQL text using ``?`` or ``%s`` placeholders
        placeholder: Target marker (``?`` for qmark, ``%s`` for format)
        escape_percent: Double literal percent signs (format paramstyle)
        backslash_escapes: Treat backslash as an escape inside literals

    >>> standardize_placeholders('select * from t where a = %s')
    'select * from t where a = ?'
    >>> standardize_placeholders("select * from t where a like 'x%' and b = ?", '%s', True)
    "select * from t where a like 'x%%' and b = %s"
    """
    def replace(m: re.Match) -> str:
        kind = m.lastgroup
        text = m.group(0)
        if kind == 'placeholder':
            return placeholder
        if escape_percent and kind in {'literal', 'comment', 'percent'}:
            return _double_percent(text)
        return text

    return _token_re(backslash_escapes).sub(replace, sql)


def make_placeholders(count: int, placeholder: str = '?') -> str:
    """Comma-separated placeholder list.

    >>> make_placeholders(3)
    '?, ?, ?'
    >>> make_placeholders(0)
    ''
    """
    return ', '.join([placeholder] * count)


def build_call_sql(name: str, count: int) -> str:
    """Synthesize a stored-procedure invocation with ``count`` placeholders.

    >>> build_call_sql('sp_users', 2)
    'CALL sp_users(?, ?)'
    >>> build_call_sql('app.sp_report', 0)
    'CALL app.sp_report()'
    """
    if not name or not _PROCEDURE_NAME_RE.match(name):
        raise ValidationError(f'Invalid procedure name: {name!r}')
    return f'CALL {name}({make_placeholders(count)})'


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
