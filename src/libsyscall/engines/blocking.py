"""Blocking engine: run a command and capture its output."""

from __future__ import annotations

import logging
import subprocess
import typing as t

from libsyscall import otel
from libsyscall.engines.base import ExecutionEngine, ExecutionResult, Outcome

if t.TYPE_CHECKING:
    from libsyscall.host import Host

logger = logging.getLogger(__name__)


class BlockingEngine(ExecutionEngine):
    """Execute commands through ``host.shell`` and wait for them to exit.

    Examples
    --------
    >>> from libsyscall.host import ProcessHost
    >>> outcome = BlockingEngine(ProcessHost(shell='/bin/sh')).run('echo hi')
    >>> outcome
    Outcome(result=ExecutionResult(stdout='hi\\n'), returncode=0)
    """

    def __init__(self, host: Host) -> None:
        self.host = host

    def run(self, command: str, stdin: str | None = None) -> Outcome:
        """Run ``command``, feeding it ``stdin`` if given."""
        argv = [self.host.shell, "-c", command]
        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="backslashreplace",
                env=otel.subprocess_env(),
            )
            stdout, stderr = process.communicate(stdin)
        except Exception:
            logger.exception("Exception for %s", subprocess.list2cmdline(argv))
            raise

        logger.debug(
            "stdout for %s: %r (exit %s)",
            command,
            stdout,
            process.returncode,
        )

        return Outcome(
            result=ExecutionResult(stdout=stdout, stderr=stderr or None),
            returncode=process.returncode,
        )


__all__ = ["BlockingEngine"]
