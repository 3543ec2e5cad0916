"""libsyscall pytest plugin."""

from __future__ import annotations

import logging
import pathlib
import shutil
import tempfile
import typing as t

import pytest

from libsyscall.constants import TEMP_PREFIX
from libsyscall.host import ProcessHost
from libsyscall.syscall import Syscall

if t.TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


@pytest.fixture
def socket_dir() -> Iterator[pathlib.Path]:
    """Return a short-lived directory for notification sockets.

    Unix socket paths are limited to about 100 bytes, which pytest's
    ``tmp_path`` can exceed, so this lives directly in the system temp dir.
    """
    path = pathlib.Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def user_shell(monkeypatch: pytest.MonkeyPatch) -> str:
    """Set ``$SHELL`` to a non-POSIX shell, as many users have it.

    >>> def test_example(user_shell: str) -> None:
    ...     import os
    ...     assert os.environ['SHELL'] == user_shell
    """
    shell = "/usr/bin/fish"
    monkeypatch.setenv("SHELL", shell)
    return shell


@pytest.fixture
def process_host(socket_dir: pathlib.Path) -> ProcessHost:
    """Return new :class:`libsyscall.host.ProcessHost`.

    Its shell setting is taken from ``$SHELL`` like any other host.

    >>> from libsyscall.host import ProcessHost

    >>> def test_example(process_host: ProcessHost) -> None:
    ...     assert process_host.server_name is None
    ...     assert process_host.snapshot().cwd is not None
    """
    return ProcessHost(socket_dir=str(socket_dir))


@pytest.fixture
def syscall(process_host: ProcessHost) -> Iterator[Syscall]:
    """Return new :class:`libsyscall.syscall.Syscall` on :func:`process_host`.

    Callbacks still pending when the test ends are logged and dropped, and
    the instance is closed.

    >>> from libsyscall.syscall import Syscall

    >>> def test_example(syscall: Syscall) -> None:
    ...     result = syscall.create(['echo', 'hi']).call()
    ...     assert result.stdout == 'hi\\n'
    """
    syscall = Syscall(host=process_host)
    yield syscall
    syscall.registry.expire(max_age=0)
    syscall.close()
