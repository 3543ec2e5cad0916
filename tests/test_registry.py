"""Tests for libsyscall.registry."""

from __future__ import annotations

import logging
import pathlib
import threading

import pytest

from libsyscall import exc
from libsyscall.host import ExecutionEnvironment
from libsyscall.registry import CallbackRegistry


def noop(environment: ExecutionEnvironment, result: object) -> None:
    """Stand-in callback."""


def test_register_and_pop() -> None:
    """An entry is returned once and then gone."""
    registry = CallbackRegistry()
    environment = ExecutionEnvironment(buffer=2, line=7)
    registry.register("/tmp/a.out", noop, environment, stdin_path="/tmp/a.in")

    assert "/tmp/a.out" in registry
    assert len(registry) == 1

    entry = registry.pop("/tmp/a.out")
    assert entry.handler is noop
    assert entry.environment == environment
    assert entry.stdin_path == "/tmp/a.in"
    assert "/tmp/a.out" not in registry

    with pytest.raises(exc.CallbackNotRegistered):
        registry.pop("/tmp/a.out")


def test_register_duplicate_key() -> None:
    """A key cannot be registered twice while pending."""
    registry = CallbackRegistry()
    registry.register("/tmp/a.out", noop, ExecutionEnvironment())
    with pytest.raises(exc.LibSyscallException):
        registry.register("/tmp/a.out", noop, ExecutionEnvironment())


def test_discard() -> None:
    """discard() tolerates unknown keys."""
    registry = CallbackRegistry()
    assert registry.discard("/tmp/unknown.out") is None
    registry.register("/tmp/a.out", noop, ExecutionEnvironment())
    assert registry.discard("/tmp/a.out") is not None
    assert len(registry) == 0


def test_pending_is_a_copy() -> None:
    """Mutating pending() does not touch the registry."""
    registry = CallbackRegistry()
    registry.register("/tmp/a.out", noop, ExecutionEnvironment())
    pending = registry.pending()
    pending.clear()
    assert len(registry) == 1


def test_expire(
    caplog: pytest.LogCaptureFixture,
    tmp_path: pathlib.Path,
) -> None:
    """expire() drops only entries older than max_age."""
    registry = CallbackRegistry()
    old_key = str(tmp_path / "old.out")
    new_key = str(tmp_path / "new.out")
    old = registry.register(old_key, noop, ExecutionEnvironment())
    registry.register(new_key, noop, ExecutionEnvironment())
    old.created_at -= 120

    with caplog.at_level(logging.WARNING, logger="libsyscall.registry"):
        stale = registry.expire(max_age=60)

    assert list(stale) == [old_key]
    assert new_key in registry
    assert old_key not in registry
    assert old_key in caplog.text


def test_pop_at_most_once_across_threads() -> None:
    """Concurrent pops deliver an entry to exactly one caller."""
    registry = CallbackRegistry()
    registry.register("/tmp/a.out", noop, ExecutionEnvironment())
    winners: list[str] = []
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        try:
            registry.pop("/tmp/a.out")
        except exc.CallbackNotRegistered:
            return
        winners.append(threading.current_thread().name)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(winners) == 1


def test_expire_removes_files(tmp_path: pathlib.Path) -> None:
    """Files owned by an expired call are deleted with its entry."""
    registry = CallbackRegistry()
    stdout_file = tmp_path / "job.out"
    stderr_file = tmp_path / "job.err"
    stdin_file = tmp_path / "job.in"
    for path in (stdout_file, stderr_file, stdin_file):
        path.write_text("")
    registry.register(
        str(stdout_file),
        noop,
        ExecutionEnvironment(),
        stderr_path=str(stderr_file),
        stdin_path=str(stdin_file),
    )

    stale = registry.expire(max_age=0)

    assert list(stale) == [str(stdout_file)]
    assert list(tmp_path.iterdir()) == []


def test_expire_keeps_files_of_live_entries(tmp_path: pathlib.Path) -> None:
    """Entries younger than max_age keep their files."""
    registry = CallbackRegistry()
    stdout_file = tmp_path / "job.out"
    stderr_file = tmp_path / "job.err"
    stdout_file.write_text("")
    stderr_file.write_text("")
    registry.register(
        str(stdout_file),
        noop,
        ExecutionEnvironment(),
        stderr_path=str(stderr_file),
    )

    assert registry.expire(max_age=60) == {}
    assert stdout_file.exists()
    assert stderr_file.exists()
