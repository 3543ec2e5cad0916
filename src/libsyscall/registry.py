"""Pending callbacks of asynchronous calls.

libsyscall.registry
~~~~~~~~~~~~~~~~~~~

Every asynchronous call inserts one entry, keyed by the path its stdout is
captured in, and the completion notification removes it again. Removal on
first completion is what guarantees a callback runs at most once.
"""

from __future__ import annotations

import dataclasses
import logging
import pathlib
import threading
import time
import typing as t

from libsyscall import exc

if t.TYPE_CHECKING:
    import subprocess

    from libsyscall._internal.types import AsyncCallback
    from libsyscall.host import ExecutionEnvironment

logger = logging.getLogger(__name__)


def _remove_files(key: str, entry: PendingCallback) -> None:
    for path in (key, entry.stderr_path, entry.stdin_path):
        if path is not None:
            pathlib.Path(path).unlink(missing_ok=True)


@dataclasses.dataclass
class PendingCallback:
    """Registry entry for an asynchronous call awaiting its notification."""

    handler: AsyncCallback
    environment: ExecutionEnvironment
    stderr_path: str | None = None
    stdin_path: str | None = None
    created_at: float = dataclasses.field(default_factory=time.monotonic)
    process: subprocess.Popen[bytes] | None = dataclasses.field(
        default=None,
        repr=False,
    )

    @property
    def age(self) -> float:
        """Seconds since the call was dispatched."""
        return time.monotonic() - self.created_at


class CallbackRegistry:
    """Thread-safe map of in-flight asynchronous calls.

    Examples
    --------
    >>> from libsyscall.host import ExecutionEnvironment
    >>> registry = CallbackRegistry()
    >>> _ = registry.register('/tmp/out', print, ExecutionEnvironment())
    >>> '/tmp/out' in registry
    True
    >>> registry.pop('/tmp/out').handler is print
    True
    >>> len(registry)
    0
    >>> registry.pop('/tmp/out')
    Traceback (most recent call last):
    ...
    libsyscall.exc.CallbackNotRegistered: No pending callback for /tmp/out
    """

    def __init__(self) -> None:
        self._entries: dict[str, PendingCallback] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        """Representation of :class:`CallbackRegistry`."""
        return f"{self.__class__.__name__}(pending={len(self)})"

    def __len__(self) -> int:
        """Return number of pending calls."""
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        """Return True if ``key`` awaits its notification."""
        with self._lock:
            return key in self._entries

    def register(
        self,
        key: str,
        handler: AsyncCallback,
        environment: ExecutionEnvironment,
        stderr_path: str | None = None,
        stdin_path: str | None = None,
    ) -> PendingCallback:
        """Insert an entry for a call about to be dispatched.

        ``key`` is the stdout path; ``stderr_path`` and ``stdin_path`` name
        the other files owned by the call.
        """
        entry = PendingCallback(
            handler=handler,
            environment=environment,
            stderr_path=stderr_path,
            stdin_path=stdin_path,
        )
        with self._lock:
            if key in self._entries:
                msg = f"Callback already registered for {key}"
                raise exc.LibSyscallException(msg)
            self._entries[key] = entry
        logger.debug("registered callback for %s", key)
        return entry

    def pop(self, key: str) -> PendingCallback:
        """Remove and return the entry for ``key``.

        Raises
        ------
        :exc:`exc.CallbackNotRegistered`
            Unknown key, or the call already completed.
        """
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None:
            raise exc.CallbackNotRegistered(key)
        return entry

    def discard(self, key: str) -> PendingCallback | None:
        """Remove the entry for ``key`` if present."""
        with self._lock:
            return self._entries.pop(key, None)

    def pending(self) -> dict[str, PendingCallback]:
        """Return a copy of all entries still awaiting notification."""
        with self._lock:
            return dict(self._entries)

    def expire(self, max_age: float) -> dict[str, PendingCallback]:
        """Drop and return entries older than ``max_age`` seconds.

        An entry this old means the background job or the notification
        channel failed. Their handlers are not invoked, and the files they
        own are removed.
        """
        with self._lock:
            stale = {
                key: entry
                for key, entry in self._entries.items()
                if entry.age > max_age
            }
            for key in stale:
                del self._entries[key]

        for key, entry in stale.items():
            logger.warning(
                "expired callback for %s after %.1fs without notification",
                key,
                entry.age,
            )
            _remove_files(key, entry)
        return stale
