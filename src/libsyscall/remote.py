"""Remote-notification channel for asynchronous calls.

libsyscall.remote
~~~~~~~~~~~~~~~~~

A :class:`NotificationServer` listens on a Unix domain socket inside the host
process. Its path is the host's *server name*: background jobs deliver a
one-shot "call this function with these arguments" message to it through
:func:`send_expression`, usually via ``python -m libsyscall notify``.

The wire format is a single JSON line in each direction::

    -> {"function": "libsyscall.complete.1a2b3c4d", "args": ["/tmp/o", "/tmp/e", "0"]}
    <- {"ok": true}

The server runs on the asyncio event loop that started it, so functions are
called on that loop's thread, one message at a time.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import shlex
import shutil
import socket
import tempfile
import typing as t

from libsyscall import exc
from libsyscall.constants import NOTIFY_SUBCOMMAND, TEMP_PREFIX

if t.TYPE_CHECKING:
    import sys
    import types
    from collections.abc import Callable, Mapping, Sequence

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self

logger = logging.getLogger(__name__)


class NotificationServer:
    """Serve remote function calls for a host on a Unix domain socket.

    Parameters
    ----------
    functions : Mapping
        Callables addressable by name. Looked up on every message, so
        functions registered after the server starts are reachable.
    socket_dir : str, optional
        Parent directory for the socket. Defaults to :func:`tempfile.gettempdir`.

    Examples
    --------
    >>> import asyncio
    >>> received = []
    >>> async def main():
    ...     async with NotificationServer({'echo': received.append}) as server:
    ...         await asyncio.to_thread(
    ...             send_expression, server.socket_path, 'echo', ['hello'],
    ...         )
    >>> asyncio.run(main())
    >>> received
    ['hello']
    """

    def __init__(
        self,
        functions: Mapping[str, Callable[..., t.Any]],
        socket_dir: str | None = None,
    ) -> None:
        self._functions = functions
        self._socket_dir = socket_dir
        self._tmpdir: str | None = None
        self._server: asyncio.AbstractServer | None = None
        self.socket_path: str | None = None

    def __repr__(self) -> str:
        """Representation of :class:`NotificationServer`."""
        return f"{self.__class__.__name__}(socket_path={self.socket_path})"

    @property
    def is_serving(self) -> bool:
        """Return True while the socket accepts connections."""
        return self._server is not None and self._server.is_serving()

    async def start(self) -> str:
        """Bind the socket on the running event loop and return its path."""
        if self._server is not None:
            msg = f"{self!r} is already serving"
            raise exc.RemoteError(msg)
        self._tmpdir = tempfile.mkdtemp(prefix=TEMP_PREFIX, dir=self._socket_dir)
        path = os.path.join(self._tmpdir, "server.sock")
        self._server = await asyncio.start_unix_server(self._handle, path=path)
        self.socket_path = path
        logger.debug("notification server listening on %s", path)
        return path

    async def close(self) -> None:
        """Stop serving and remove the socket."""
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        if self._tmpdir is not None:
            shutil.rmtree(self._tmpdir, ignore_errors=True)
            self._tmpdir = None
        self.socket_path = None

    async def __aenter__(self) -> Self:
        """Start serving for the duration of the ``async with`` block."""
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Stop serving."""
        await self.close()

    def dispatch(self, line: bytes | str) -> dict[str, t.Any]:
        """Call the function named by one message and return the reply.

        Examples
        --------
        >>> server = NotificationServer({'add': lambda a, b: a + b})
        >>> server.dispatch('{"function": "add", "args": [1, 2]}')
        {'ok': True}
        >>> server.dispatch('{"function": "nope"}')
        {'ok': False, 'error': 'unknown function: nope'}
        >>> server.dispatch('not json')['ok']
        False
        """
        try:
            message = json.loads(line)
            name = message["function"]
            args = list(message.get("args", []))
        except (ValueError, KeyError, TypeError) as e:
            return {"ok": False, "error": f"malformed message: {e}"}

        func = self._functions.get(name)
        if func is None:
            return {"ok": False, "error": f"unknown function: {name}"}

        try:
            func(*args)
        except Exception as e:
            logger.exception("remote function %s failed", name)
            return {"ok": False, "error": f"{type(e).__name__}: {e}"}
        return {"ok": True}

    async def _handle(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        try:
            line = await reader.readline()
            reply = self.dispatch(line)
            writer.write(json.dumps(reply).encode("utf-8") + b"\n")
            await writer.drain()
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()


def send_expression(
    server_name: str,
    function: str,
    args: Sequence[t.Any] = (),
    timeout: float | None = 30.0,
) -> None:
    """Call ``function(*args)`` inside the process serving ``server_name``.

    Parameters
    ----------
    server_name : str
        Socket path of a :class:`NotificationServer`.
    function : str
        Name the function was registered under.
    args : list
        JSON-serializable arguments.
    timeout : float, optional
        Seconds to wait for the reply.

    Raises
    ------
    :exc:`exc.RemoteError`
        The server could not be reached, or the call failed there.
    """
    payload = json.dumps({"function": function, "args": list(args)}) + "\n"
    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(timeout)
            sock.connect(server_name)
            sock.sendall(payload.encode("utf-8"))
            with sock.makefile("r", encoding="utf-8") as f:
                raw_reply = f.readline()
    except OSError as e:
        msg = f"Could not reach {server_name}: {e}"
        raise exc.RemoteError(msg) from e

    try:
        reply = json.loads(raw_reply)
    except ValueError:
        reply = {"ok": False, "error": f"bad reply: {raw_reply!r}"}

    if not reply.get("ok"):
        msg = f"{function} failed on {server_name}: {reply.get('error')}"
        raise exc.RemoteError(msg)


def build_notify_command(
    executable: str,
    server_name: str,
    function: str,
    *args: str,
) -> str:
    """Return a shell snippet that reports back to ``server_name``.

    The final argument is always ``"$?"``, the exit status of whatever ran
    right before the snippet in the same shell.

    Examples
    --------
    >>> print(build_notify_command('python3', '/tmp/s', 'done', 'a b'))
    python3 -m libsyscall notify --server /tmp/s --function done 'a b' "$?"
    """
    words = [
        executable,
        "-m",
        "libsyscall",
        NOTIFY_SUBCOMMAND,
        "--server",
        server_name,
        "--function",
        function,
        *args,
    ]
    return " ".join(shlex.quote(word) for word in words) + ' "$?"'
