"""Force a POSIX shell for the duration of an execution.

libsyscall.guard
~~~~~~~~~~~~~~~~

A user's shell may be fish, a wrapper script, or something else that does not
understand the ``&&``, ``||`` and redirections libsyscall renders. Every
execution therefore runs inside :func:`shell_guard`.
"""

from __future__ import annotations

import contextlib
import logging
import os
import re
import typing as t

from libsyscall.constants import DEFAULT_USABLE_SHELL, FALLBACK_SHELL

if t.TYPE_CHECKING:
    import sys
    import types
    from collections.abc import Iterator

    from libsyscall.host import Host

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self

logger = logging.getLogger(__name__)


class EnvironmentVarGuard:
    """Set environment variables and restore them on exit.

    Examples
    --------
    >>> with EnvironmentVarGuard() as env:
    ...     env.set('LIBSYSCALL_EXAMPLE', '1')
    ...     os.environ['LIBSYSCALL_EXAMPLE']
    '1'
    >>> 'LIBSYSCALL_EXAMPLE' in os.environ
    False
    """

    def __init__(self) -> None:
        self._environ = os.environ
        self._unset: set[str] = set()
        self._reset: dict[str, str] = {}

    def set(self, envvar: str, value: str) -> None:
        """Set environment variable."""
        if envvar not in self._environ:
            self._unset.add(envvar)
        elif envvar not in self._reset and envvar not in self._unset:
            self._reset[envvar] = self._environ[envvar]
        self._environ[envvar] = value

    def restore(self) -> None:
        """Put back every variable touched through :meth:`set`."""
        for envvar, value in self._reset.items():
            self._environ[envvar] = value
        for unset in self._unset:
            self._environ.pop(unset, None)
        self._reset.clear()
        self._unset.clear()

    def __enter__(self) -> Self:
        """Return context for for context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Cleanup to run after context manager finishes."""
        self.restore()


def is_usable_shell(shell: str | None, usable_shell: str | re.Pattern[str]) -> bool:
    """Return True if ``shell`` matches ``usable_shell``.

    Examples
    --------
    >>> is_usable_shell('/bin/sh', DEFAULT_USABLE_SHELL)
    True
    >>> is_usable_shell('/usr/bin/fish', DEFAULT_USABLE_SHELL)
    False
    >>> is_usable_shell(None, DEFAULT_USABLE_SHELL)
    False
    """
    if shell is None:
        return False
    return re.search(usable_shell, shell) is not None


@contextlib.contextmanager
def shell_guard(
    host: Host,
    usable_shell: str | re.Pattern[str] = DEFAULT_USABLE_SHELL,
) -> Iterator[str]:
    """Run the block with ``host.shell`` and ``$SHELL`` set to a usable shell.

    If either value does not match ``usable_shell``, both are set to
    ``/bin/sh``. The originals are restored however the block exits.

    Yields the shell in effect.

    Examples
    --------
    >>> from libsyscall.host import ProcessHost
    >>> host = ProcessHost(shell='/usr/bin/fish')
    >>> with shell_guard(host) as shell:
    ...     shell, host.shell, os.environ['SHELL']
    ('/bin/sh', '/bin/sh', '/bin/sh')
    >>> host.shell
    '/usr/bin/fish'
    """
    saved_shell = host.shell
    with EnvironmentVarGuard() as env:
        if not (
            is_usable_shell(saved_shell, usable_shell)
            and is_usable_shell(os.environ.get("SHELL"), usable_shell)
        ):
            logger.debug(
                "shell %s / $SHELL %s not usable, forcing %s",
                saved_shell,
                os.environ.get("SHELL"),
                FALLBACK_SHELL,
            )
            host.shell = FALLBACK_SHELL
            env.set("SHELL", FALLBACK_SHELL)
        try:
            yield host.shell
        finally:
            host.shell = saved_shell
