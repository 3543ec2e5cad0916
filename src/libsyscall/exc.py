"""Provide exceptions used by libsyscall.

libsyscall.exc
~~~~~~~~~~~~~~

Notes
-----
Exceptions in this module inherit from :exc:`LibSyscallException`. Several of
them also inherit from the builtin exception closest to their meaning, so
``except TypeError`` or ``except FileNotFoundError`` keep working for callers
that do not know about libsyscall.
"""

from __future__ import annotations

import typing as t


class LibSyscallException(Exception):
    """Base exception for all libsyscall errors."""


class WrongType(LibSyscallException, TypeError):
    """Raised when a value passed to libsyscall has an unexpected type."""

    def __init__(self, name: str, expected: str, value: t.Any, *args: object) -> None:
        super().__init__(
            f"Expected {name} to be {expected}, got {type(value).__name__}: {value!r}",
        )


class NotFound(LibSyscallException, FileNotFoundError):
    """Raised when a working directory does not exist."""

    def __init__(self, path: str, *args: object) -> None:
        super().__init__(f"Directory not found: {path}")
        self.path = path


class Unsupported(LibSyscallException, NotImplementedError):
    """Raised when an execution mode cannot honor part of a command."""


class ShellError(LibSyscallException):
    """Raised when a command exits with a non-zero status.

    The message embeds the rendered command and any captured stderr, so the
    failure can be diagnosed without re-running the command.
    """

    def __init__(
        self,
        command: str,
        stderr: str | None = None,
        returncode: int | None = None,
        *args: object,
        msg: str | None = None,
    ) -> None:
        if msg is None:
            msg = f"Error running: {command}"
            if stderr:
                msg += f"\n{stderr.rstrip()}"
        super().__init__(msg)
        self.command = command
        self.stderr = stderr
        self.returncode = returncode


class AsyncUnavailable(ShellError):
    """Raised when an asynchronous call cannot be dispatched and no fallback
    is allowed.
    """

    def __init__(self, command: str, reason: str, *args: object) -> None:
        super().__init__(
            command,
            msg=f"Async call unavailable ({reason}): {command}",
        )
        self.reason = reason


class CallbackNotRegistered(LibSyscallException, LookupError):
    """Raised when a completion arrives for an unknown or finished call."""

    def __init__(self, key: str, *args: object) -> None:
        super().__init__(f"No pending callback for {key}")
        self.key = key


class RemoteError(LibSyscallException):
    """Raised when a remote expression could not be delivered or failed."""


__all__ = sorted(
    {
        "AsyncUnavailable",
        "CallbackNotRegistered",
        "LibSyscallException",
        "NotFound",
        "RemoteError",
        "ShellError",
        "Unsupported",
        "WrongType",
    },
)
