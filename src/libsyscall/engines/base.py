"""Core abstractions for libsyscall execution engines."""

from __future__ import annotations

import dataclasses
from typing import Protocol

from libsyscall._internal.dataclasses import SkipDefaultFieldsReprMixin


@dataclasses.dataclass(repr=False)
class ExecutionResult(SkipDefaultFieldsReprMixin):
    """Output of a call.

    ``stderr`` is None when nothing was written to it. ``status`` is only set
    for asynchronous calls; synchronous ones report their exit status through
    :attr:`libsyscall.syscall.Syscall.last_status` or by raising.

    Examples
    --------
    >>> ExecutionResult(stdout='x')
    ExecutionResult(stdout='x')
    >>> ExecutionResult()
    ExecutionResult()
    """

    stdout: str | None = None
    stderr: str | None = None
    status: int | None = None


@dataclasses.dataclass
class Outcome:
    """Result of one engine run, before normalization.

    ``returncode`` is None when the exit status is not known yet.
    """

    result: ExecutionResult
    returncode: int | None = None


class ExecutionEngine(Protocol):
    """Protocol for components that can execute a rendered command."""

    def run(
        self,
        command: str,
        stdin: str | None = None,
    ) -> Outcome:  # pragma: no cover
        """Execute ``command`` and return an :class:`Outcome`.

        Implementations may rely on structural typing rather than inheritance.
        """
        ...
