"""Run :class:`~libsyscall.command.Command` objects.

libsyscall.syscall
~~~~~~~~~~~~~~~~~~

:class:`Syscall` owns everything a running command needs: the
:class:`~libsyscall.host.Host`, the shell pattern enforced by
:func:`~libsyscall.guard.shell_guard`, and the
:class:`~libsyscall.registry.CallbackRegistry` of asynchronous calls still
in flight. Independent instances do not share state.
"""

from __future__ import annotations

import logging
import pathlib
import re
import typing as t
import uuid

from libsyscall import exc, otel
from libsyscall.command import Command, create
from libsyscall.constants import COMPLETION_FUNCTION_PREFIX, DEFAULT_USABLE_SHELL
from libsyscall.engines import (
    AsyncCallbackEngine,
    BlockingEngine,
    ExecutionResult,
    ForegroundEngine,
)
from libsyscall.guard import shell_guard
from libsyscall.host import ProcessHost
from libsyscall.registry import CallbackRegistry

if t.TYPE_CHECKING:
    from libsyscall._internal.types import AsyncCallback, CommandSpec
    from libsyscall.engines import ExecutionEngine
    from libsyscall.host import Host

logger = logging.getLogger(__name__)


def _check_bool(name: str, value: t.Any) -> None:
    if not isinstance(value, bool):
        raise exc.WrongType(name, "a bool", value)


def _read_and_remove(path: pathlib.Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="backslashreplace")
    finally:
        path.unlink(missing_ok=True)


class Syscall:
    """Execute commands in blocking, foreground or asynchronous mode.

    Parameters
    ----------
    host : :class:`~libsyscall.host.Host`, optional
        Defaults to a new :class:`~libsyscall.host.ProcessHost`.
    registry : :class:`~libsyscall.registry.CallbackRegistry`, optional
        Defaults to a new, empty registry.
    usable_shell : str, optional
        Regular expression a shell must match to be used as-is. Anything else
        is replaced by ``/bin/sh`` while a command runs.

    Examples
    --------
    >>> syscall = Syscall()
    >>> syscall.create(['echo', 'hello world']).call()
    ExecutionResult(stdout='hello world\\n')

    >>> syscall.create('exit 3').call(throw_errors=False)
    ExecutionResult(stdout='')
    >>> syscall.last_status
    3

    >>> syscall.create('echo oops >&2; exit 3').call()
    Traceback (most recent call last):
    ...
    libsyscall.exc.ShellError: Error running: echo oops >&2; exit 3
    oops
    """

    def __init__(
        self,
        host: Host | None = None,
        registry: CallbackRegistry | None = None,
        usable_shell: str = DEFAULT_USABLE_SHELL,
    ) -> None:
        self.host: Host = host if host is not None else ProcessHost()
        self.registry = registry if registry is not None else CallbackRegistry()
        self.usable_shell = re.compile(usable_shell)

        #: Exit status of the most recent blocking or foreground call
        self.last_status = 0

        self.completion_function = (
            f"{COMPLETION_FUNCTION_PREFIX}{uuid.uuid4().hex[:8]}"
        )
        self.host.register_function(
            self.completion_function,
            self.handle_completion,
        )

    def __repr__(self) -> str:
        """Representation of :class:`Syscall`."""
        return f"{self.__class__.__name__}(host={self.host!r})"

    def close(self) -> None:
        """Unregister the completion handler from the host.

        Calls still pending can no longer complete; their entries are left
        for :meth:`~libsyscall.registry.CallbackRegistry.expire`.
        """
        self.host.unregister_function(self.completion_function)

    def set_usable_shell(self, pattern: str) -> None:
        """Change the pattern a shell must match to be used as-is."""
        self.usable_shell = re.compile(pattern)

    def create(self, spec: CommandSpec | Command) -> Command:
        """Return a :class:`~libsyscall.command.Command` bound to this instance.

        An existing command is returned unchanged.
        """
        return create(spec, syscall=self)

    def async_unavailable_reason(self) -> str | None:
        """Return why asynchronous calls cannot be dispatched, or None."""
        if not self.host.has_clientserver:
            return "client/server support not available"
        if not self.host.server_name:
            return "no server name"
        return None

    def is_async_available(self) -> bool:
        """Return True if :meth:`call_async` can run in the background."""
        return self.async_unavailable_reason() is None

    def call(
        self,
        command: CommandSpec | Command,
        throw_errors: bool = True,
    ) -> ExecutionResult:
        """Run ``command``, wait for it and capture its output.

        Raises
        ------
        :exc:`exc.ShellError`
            Non-zero exit status and ``throw_errors`` is true.
        """
        _check_bool("throw_errors", throw_errors)
        command = self.create(command)
        return self._execute(
            BlockingEngine(self.host),
            command,
            throw_errors,
            span="libsyscall.call",
        )

    def call_foreground(
        self,
        command: CommandSpec | Command,
        pause: bool = False,
        throw_errors: bool = True,
    ) -> ExecutionResult:
        """Run ``command`` on the host's terminal and wait for it.

        Nothing is captured; the result is always empty.

        Raises
        ------
        :exc:`exc.Unsupported`
            ``command`` has a stdin payload. Nothing is run.
        :exc:`exc.ShellError`
            Non-zero exit status and ``throw_errors`` is true.
        """
        _check_bool("pause", pause)
        _check_bool("throw_errors", throw_errors)
        command = self.create(command)
        if command.stdin is not None:
            msg = (
                "stdin is not supported for foreground calls: "
                f"{command.get_command()}"
            )
            raise exc.Unsupported(msg)
        return self._execute(
            ForegroundEngine(self.host, pause=pause),
            command,
            throw_errors,
            span="libsyscall.call_foreground",
        )

    def call_async(
        self,
        command: CommandSpec | Command,
        callback: AsyncCallback,
        allow_sync_fallback: bool = False,
        throw_errors: bool = True,
    ) -> ExecutionResult:
        """Run ``command`` in the background and return immediately.

        ``callback(environment, result)`` is called exactly once after the
        command exited, from the host's event loop. ``result.status`` holds
        the exit status; it is never raised.

        If asynchronous calls are unavailable and ``allow_sync_fallback`` is
        true, the command runs blocking instead and ``callback`` is called
        before this method returns.

        Raises
        ------
        :exc:`exc.AsyncUnavailable`
            Asynchronous calls are unavailable and no fallback is allowed.
        """
        if not callable(callback):
            raise exc.WrongType("callback", "callable", callback)
        _check_bool("allow_sync_fallback", allow_sync_fallback)
        _check_bool("throw_errors", throw_errors)
        command = self.create(command)

        reason = self.async_unavailable_reason()
        if reason is not None:
            if not allow_sync_fallback:
                raise exc.AsyncUnavailable(command.get_command(), reason)
            logger.warning(
                "async calls unavailable (%s), running synchronously: %s",
                reason,
                command.get_command(),
            )
            environment = self.host.snapshot()
            result = self.call(command, throw_errors=False)
            result.status = self.last_status
            callback(environment, result)
            return result

        engine = AsyncCallbackEngine(
            self.host,
            self.registry,
            self.completion_function,
            callback,
        )
        return self._execute(
            engine,
            command,
            throw_errors,
            span="libsyscall.call_async",
        )

    def handle_completion(
        self,
        stdout_path: str,
        stderr_path: str,
        status: int | str,
    ) -> None:
        """Finish an asynchronous call.

        Called through the host's notification server once the background
        job exited. Reads and removes the output files, then invokes the
        registered callback.

        Raises
        ------
        :exc:`exc.CallbackNotRegistered`
            No call is pending for ``stdout_path``.
        """
        entry = self.registry.pop(stdout_path)
        result = ExecutionResult(status=int(status))
        try:
            result.stdout = _read_and_remove(pathlib.Path(stdout_path))
            stderr_file = pathlib.Path(stderr_path)
            if stderr_file.exists():
                result.stderr = _read_and_remove(stderr_file) or None
        finally:
            if entry.stdin_path is not None:
                pathlib.Path(entry.stdin_path).unlink(missing_ok=True)

        logger.debug(
            "completed %s after %.2fs with status %s",
            stdout_path,
            entry.age,
            result.status,
        )
        entry.handler(entry.environment, result)

    def _execute(
        self,
        engine: ExecutionEngine,
        command: Command,
        throw_errors: bool,
        span: str,
    ) -> ExecutionResult:
        rendered = command.get_command()
        with otel.start_span(span, command=rendered):
            with shell_guard(self.host, self.usable_shell):
                outcome = engine.run(rendered, command.stdin)

        if outcome.returncode is None:
            return outcome.result

        self.last_status = outcome.returncode
        if throw_errors and outcome.returncode != 0:
            raise exc.ShellError(
                rendered,
                stderr=outcome.result.stderr,
                returncode=outcome.returncode,
            )
        return outcome.result
