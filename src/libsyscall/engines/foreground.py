"""Foreground engine: run a command on the host's terminal."""

from __future__ import annotations

import logging
import typing as t

from libsyscall import exc
from libsyscall.engines.base import ExecutionEngine, ExecutionResult, Outcome

if t.TYPE_CHECKING:
    from libsyscall.host import Host

logger = logging.getLogger(__name__)


class ForegroundEngine(ExecutionEngine):
    """Let the user watch a command run. Nothing is captured."""

    def __init__(self, host: Host, pause: bool = False) -> None:
        self.host = host
        self.pause = pause

    def run(self, command: str, stdin: str | None = None) -> Outcome:
        """Hand ``command`` to :meth:`Host.foreground`."""
        if stdin is not None:
            msg = "stdin is not supported for foreground calls"
            raise exc.Unsupported(msg)

        logger.debug("running %s in the foreground", command)
        returncode = self.host.foreground(command, self.pause)
        return Outcome(result=ExecutionResult(), returncode=returncode)


__all__ = ["ForegroundEngine"]
