"""Asynchronous engine: dispatch a background job and return immediately.

The job writes the command's output to temporary files, then reports back to
the host's notification server by running ``python -m libsyscall notify``.
The server calls the owning :class:`~libsyscall.syscall.Syscall`'s completion
handler, which reads the files and invokes the callback.
"""

from __future__ import annotations

import logging
import os
import pathlib
import shlex
import subprocess
import tempfile
import typing as t

from libsyscall import otel
from libsyscall.constants import TEMP_PREFIX
from libsyscall.engines.base import ExecutionEngine, ExecutionResult, Outcome
from libsyscall.remote import build_notify_command

if t.TYPE_CHECKING:
    from libsyscall._internal.types import AsyncCallback
    from libsyscall.host import Host
    from libsyscall.registry import CallbackRegistry

logger = logging.getLogger(__name__)


def _mktemp(suffix: str) -> str:
    fd, path = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=suffix)
    os.close(fd)
    return path


def _remove(*paths: str | None) -> None:
    for path in paths:
        if path is not None:
            pathlib.Path(path).unlink(missing_ok=True)


class AsyncCallbackEngine(ExecutionEngine):
    """Dispatch commands to a detached background shell.

    Parameters
    ----------
    host : :class:`~libsyscall.host.Host`
        Must be serving; ``host.server_name`` is where the job reports to.
    registry : :class:`~libsyscall.registry.CallbackRegistry`
        Receives one entry per dispatched call.
    function : str
        Name the completion handler is registered under on ``host``.
    callback : callable
        Invoked with ``(environment, result)`` once the job finished.
    """

    def __init__(
        self,
        host: Host,
        registry: CallbackRegistry,
        function: str,
        callback: AsyncCallback,
    ) -> None:
        self.host = host
        self.registry = registry
        self.function = function
        self.callback = callback

    def build_job(
        self,
        command: str,
        stdout_path: str,
        stderr_path: str,
        stdin_path: str | None = None,
    ) -> str:
        """Return the shell script run in the background.

        The notification is chained after the command, so both output files
        are complete by the time it fires and ``"$?"`` is the command's exit
        status.
        """
        server_name = self.host.server_name
        assert server_name is not None

        redirects = f">{shlex.quote(stdout_path)} 2>{shlex.quote(stderr_path)}"
        if stdin_path is not None:
            redirects += f" <{shlex.quote(stdin_path)}"
        notify = build_notify_command(
            self.host.executable,
            server_name,
            self.function,
            stdout_path,
            stderr_path,
        )
        # newline before ")" so a trailing comment in command cannot eat it
        return f"( {command}\n) {redirects}; {notify}"

    def run(self, command: str, stdin: str | None = None) -> Outcome:
        """Register the callback, start the job and return without waiting.

        If anything fails before the job is running, the registry entry and
        every temporary file are removed before the error propagates.
        """
        stdout_path = _mktemp(".out")
        stderr_path: str | None = None
        stdin_path: str | None = None
        argv: list[str] = []
        try:
            stderr_path = _mktemp(".err")
            if stdin is not None:
                stdin_path = _mktemp(".in")
                pathlib.Path(stdin_path).write_text(stdin, encoding="utf-8")

            job = self.build_job(command, stdout_path, stderr_path, stdin_path)
            entry = self.registry.register(
                stdout_path,
                self.callback,
                self.host.snapshot(),
                stderr_path=stderr_path,
                stdin_path=stdin_path,
            )

            argv = [self.host.shell, "-c", job]
            entry.process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
                env=otel.subprocess_env(),
            )
        except Exception:
            logger.exception(
                "Exception for %s",
                subprocess.list2cmdline(argv) if argv else command,
            )
            self.registry.discard(stdout_path)
            _remove(stdout_path, stderr_path, stdin_path)
            raise

        logger.debug(
            "dispatched %s (pid %s), output in %s",
            command,
            entry.process.pid,
            stdout_path,
        )
        return Outcome(result=ExecutionResult(), returncode=None)


__all__ = ["AsyncCallbackEngine"]
