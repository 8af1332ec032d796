"""
Alias registry of open connections.

A registry is constructed explicitly and handed to the code that needs it;
there is no module-level instance. Registration is expected to happen once
at startup, before concurrent use begins.
"""
import logging
from collections.abc import Iterator
from typing import Any

from superdb.connection import Connection, connect
from superdb.exceptions import AliasNotFoundError, DuplicateAliasError
from superdb.options import DatabaseOptions

from libb import load_options

logger = logging.getLogger(__name__)

__all__ = ['ConnectionRegistry']


class ConnectionRegistry:
    """Maps aliases to open connections and tracks the default alias.

    The first successful registration becomes the default unless a later
    one passes ``make_default=True``. Aliases are case-sensitive and cannot
    be replaced or removed.

    Closing a registered connection does not unregister it: the next
    statement run through it opens a fresh session with the same options,
    so state tied to the old session (temporary tables, an open transaction)
    is gone.

    Examples
        registry = ConnectionRegistry()
        registry.register({'hostname': 'db1', 'database': 'app', 'username': 'app'})
        registry.register('reporting', config=config, alias='reports')
        registry.get().select_many('select * from users')
        registry.get('reports').select_scalar('select count(*) from orders')
    """

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._default_alias: str | None = None

    def __contains__(self, alias: str) -> bool:
        return alias in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[str]:
        return iter(self._connections)

    def __repr__(self) -> str:
        return f'ConnectionRegistry(aliases={self.aliases!r}, default={self._default_alias!r})'

    @property
    def default_alias(self) -> str | None:
        return self._default_alias

    @property
    def aliases(self) -> list[str]:
        """Registered aliases in registration order."""
        return list(self._connections)

    def register(self, options: DatabaseOptions | dict[str, Any] | str,
                 config: Any | None = None, make_default: bool = False,
                 **kw: Any) -> Connection:
        """Open a session and register it under ``options.alias``.

        Args:
            options: DatabaseOptions, dict of options, or name of a setting in `config`
            config: Configuration object (for loading from config files)
            make_default: Make this alias the default even if one exists
            **kw: Additional keyword arguments to override options

        Raises
            DuplicateAliasError: If the alias is already registered; checked
                before any session is opened
            ConnectionFailure: If the driver cannot open the session
        """
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

        alias = options.alias
        if alias in self._connections:
            raise DuplicateAliasError(alias)

        cn = connect(options)
        self._connections[alias] = cn
        if self._default_alias is None or make_default:
            self._default_alias = alias
        logger.debug(f'Registered connection {alias!r} (default: {self._default_alias!r})')
        return cn

    def get(self, alias: str | None = None) -> Connection:
        """Resolve an alias; None or an empty alias resolves the default.

        Raises
            AliasNotFoundError: If the alias is not registered
        """
        if not alias:
            alias = self._default_alias
        if alias is None or alias not in self._connections:
            raise AliasNotFoundError(alias or '')
        return self._connections[alias]

    def set_default(self, alias: str) -> None:
        """Designate an already registered alias as the default.
        """
        if alias not in self._connections:
            raise AliasNotFoundError(alias)
        self._default_alias = alias
