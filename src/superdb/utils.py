"""Low-level helpers with no internal dependencies.
"""
import logging

logger = logging.getLogger(__name__)


def unwrap_args(args: tuple | list | None) -> tuple:
    """Normalize positional parameters into a flat tuple.

    A single list or tuple argument is taken as the whole parameter sequence.

    >>> unwrap_args((1, 'a'))
    (1, 'a')
    >>> unwrap_args(([1, 'a'],))
    (1, 'a')
    >>> unwrap_args(None)
    ()
    """
    if not args:
        return ()
    if len(args) == 1 and isinstance(args[0], (list, tuple)):
        return tuple(args[0])
    return tuple(args)
