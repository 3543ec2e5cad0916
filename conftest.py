"""Conftest.py (root-level).

We keep this in root pytest fixtures in pytest's doctest plugin to be available, as well
as avoiding conftest.py from being included in the wheel.
"""

from __future__ import annotations

import typing as t

import pytest
from _pytest.doctest import DoctestItem

from libsyscall.command import create
from libsyscall.host import ProcessHost
from libsyscall.syscall import Syscall

if t.TYPE_CHECKING:
    import pathlib


@pytest.fixture(autouse=True)
def add_doctest_fixtures(
    request: pytest.FixtureRequest,
    doctest_namespace: dict[str, t.Any],
) -> None:
    """Configure doctest fixtures for pytest-doctest."""
    if isinstance(request._pyfuncitem, DoctestItem):
        doctest_namespace["create"] = create
        doctest_namespace["ProcessHost"] = ProcessHost
        doctest_namespace["Syscall"] = Syscall
        doctest_namespace["syscall"] = request.getfixturevalue("syscall")
        doctest_namespace["request"] = request


@pytest.fixture(autouse=True)
def set_home(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: pathlib.Path,
) -> None:
    """Configure home directory for pytest tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
