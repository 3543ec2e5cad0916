"""Host process integration for libsyscall.

libsyscall.host
~~~~~~~~~~~~~~~

The host is the long-lived process commands are run for, typically an editor.
It owns the shell setting, knows where the user is (for
:class:`ExecutionEnvironment` snapshots), runs foreground commands on its
terminal and, while serving, is addressable by other processes through a
:class:`~libsyscall.remote.NotificationServer`.

:class:`ProcessHost` implements this for a plain Python process. Editor
integrations can provide their own object satisfying :class:`Host`.
"""

from __future__ import annotations

import contextlib
import dataclasses
import logging
import os
import socket
import subprocess
import sys
import typing as t

from libsyscall._internal.dataclasses import SkipDefaultFieldsReprMixin
from libsyscall.constants import FALLBACK_SHELL
from libsyscall.remote import NotificationServer

if t.TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, repr=False)
class ExecutionEnvironment(SkipDefaultFieldsReprMixin):
    """Where the user was when a call was made.

    Captured once per call and handed to asynchronous callbacks unchanged, so
    they can act on the right buffer even if focus moved in the meantime.

    Examples
    --------
    >>> ExecutionEnvironment(tab=1, buffer=3, path='/src/app.py', line=10, column=4)
    ExecutionEnvironment(tab=1, buffer=3, path='/src/app.py', line=10, column=4)
    """

    tab: int | None = None
    window: int | None = None
    buffer: int | None = None
    path: str | None = None
    line: int | None = None
    column: int | None = None
    cwd: str | None = None


class Host(t.Protocol):
    """Protocol for the process libsyscall executes commands on behalf of."""

    #: Shell used to run commands, like an editor's ``shell`` option
    shell: str

    #: Interpreter able to run ``-m libsyscall``
    executable: str

    @property
    def server_name(self) -> str | None:
        """Address other processes can reach this host at, if serving."""
        ...

    @property
    def has_clientserver(self) -> bool:
        """Return True when the host supports remote calls at all."""
        ...

    def register_function(self, name: str, func: Callable[..., t.Any]) -> None:
        """Make ``func`` callable by remote processes under ``name``."""
        ...

    def unregister_function(self, name: str) -> None:
        """Remove a function added with :meth:`register_function`."""
        ...

    def snapshot(self) -> ExecutionEnvironment:
        """Capture the current :class:`ExecutionEnvironment`."""
        ...

    def foreground(self, command: str, pause: bool) -> int:
        """Run ``command`` on the host's terminal and return its exit status."""
        ...


class ProcessHost:
    """:class:`Host` backed by the current Python process.

    Focus attributes (``tab``, ``window``, ``buffer``, ``path``, ``line``,
    ``column``) are plain attributes an embedding application updates as the
    user moves around; :meth:`snapshot` copies them.

    Parameters
    ----------
    shell : str, optional
        Shell setting. Defaults to ``$SHELL``, then ``/bin/sh``.
    executable : str, optional
        Python interpreter for background notifications. Defaults to
        :data:`sys.executable`.
    socket_dir : str, optional
        Where :meth:`serve` creates its socket.

    Examples
    --------
    >>> host = ProcessHost(shell='/bin/sh')
    >>> host.server_name is None
    True
    >>> host.path = '/src/app.py'
    >>> host.line = 3
    >>> host.snapshot().path
    '/src/app.py'
    """

    def __init__(
        self,
        shell: str | None = None,
        executable: str | None = None,
        socket_dir: str | None = None,
    ) -> None:
        self.shell = shell or os.environ.get("SHELL") or FALLBACK_SHELL
        self.executable = executable or sys.executable
        self.functions: dict[str, Callable[..., t.Any]] = {}
        self._server = NotificationServer(self.functions, socket_dir=socket_dir)

        self.tab: int | None = None
        self.window: int | None = None
        self.buffer: int | None = None
        self.path: str | None = None
        self.line: int | None = None
        self.column: int | None = None

    def __repr__(self) -> str:
        """Representation of :class:`ProcessHost`."""
        return (
            f"{self.__class__.__name__}(shell={self.shell}, "
            f"server_name={self.server_name})"
        )

    @property
    def server_name(self) -> str | None:
        """Socket path while :meth:`serve` is active, else None."""
        if not self._server.is_serving:
            return None
        return self._server.socket_path

    @property
    def has_clientserver(self) -> bool:
        """Return True on platforms with Unix domain sockets."""
        return hasattr(socket, "AF_UNIX")

    def register_function(self, name: str, func: Callable[..., t.Any]) -> None:
        """Make ``func`` callable through the notification server."""
        self.functions[name] = func

    def unregister_function(self, name: str) -> None:
        """Remove a function added with :meth:`register_function`."""
        self.functions.pop(name, None)

    def snapshot(self) -> ExecutionEnvironment:
        """Capture focus attributes and the working directory."""
        return ExecutionEnvironment(
            tab=self.tab,
            window=self.window,
            buffer=self.buffer,
            path=self.path,
            line=self.line,
            column=self.column,
            cwd=os.getcwd(),
        )

    def foreground(self, command: str, pause: bool) -> int:
        """Run ``command`` with the terminal passed through.

        Output goes straight to this process's stdout and stderr. With
        ``pause``, wait for the user to press ENTER before returning.
        """
        argv = [self.shell, "-c", command]
        try:
            process = subprocess.Popen(argv)
            returncode = process.wait()
        except Exception:
            logger.exception("Exception for %s", subprocess.list2cmdline(argv))
            raise

        if pause:
            input("Press ENTER to continue")
        return returncode

    @contextlib.asynccontextmanager
    async def serve(self) -> AsyncIterator[str]:
        """Accept remote calls on the running event loop.

        Yields the server name, which stays valid until the block exits.
        """
        path = await self._server.start()
        try:
            yield path
        finally:
            await self._server.close()
