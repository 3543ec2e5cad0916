"""Tests for blocking and foreground calls of libsyscall.syscall."""

from __future__ import annotations

import logging
import typing as t

import pytest

from libsyscall import exc
from libsyscall.engines import ExecutionResult
from libsyscall.host import ExecutionEnvironment, ProcessHost

if t.TYPE_CHECKING:
    import pathlib

    from libsyscall.syscall import Syscall


class CallFixture(t.NamedTuple):
    """Test fixture for test_call()."""

    test_id: str
    spec: str | list[str]
    stdin: str | None
    expected_stdout: str
    expected_stderr: str | None


CALL_FIXTURES: list[CallFixture] = [
    CallFixture(
        test_id="echo_words",
        spec=["echo", "hello world"],
        stdin=None,
        expected_stdout="hello world\n",
        expected_stderr=None,
    ),
    CallFixture(
        test_id="literal_pipeline",
        spec="printf 'a\\nb\\n' | wc -l | tr -d ' '",
        stdin=None,
        expected_stdout="2\n",
        expected_stderr=None,
    ),
    CallFixture(
        test_id="stderr_captured",
        spec="echo out; echo err >&2",
        stdin=None,
        expected_stdout="out\n",
        expected_stderr="err\n",
    ),
    CallFixture(
        test_id="stdin_payload",
        spec=["cat"],
        stdin="line one\nline two\n",
        expected_stdout="line one\nline two\n",
        expected_stderr=None,
    ),
    CallFixture(
        test_id="no_output",
        spec="true",
        stdin=None,
        expected_stdout="",
        expected_stderr=None,
    ),
]


@pytest.mark.parametrize(
    list(CallFixture._fields),
    CALL_FIXTURES,
    ids=[test.test_id for test in CALL_FIXTURES],
)
def test_call(
    test_id: str,
    spec: str | list[str],
    stdin: str | None,
    expected_stdout: str,
    expected_stderr: str | None,
    syscall: Syscall,
) -> None:
    """Verify blocking calls capture stdout and stderr."""
    command = syscall.create(spec)
    if stdin is not None:
        command = command.with_stdin(stdin)

    result = command.call()

    assert result.stdout == expected_stdout
    assert result.stderr == expected_stderr
    assert result.status is None
    assert syscall.last_status == 0


def test_call_error_raises(syscall: Syscall) -> None:
    """A non-zero exit raises ShellError naming the command and stderr."""
    command = syscall.create("echo broken >&2; exit 3")
    with pytest.raises(exc.ShellError) as excinfo:
        command.call()

    assert excinfo.value.command == "echo broken >&2; exit 3"
    assert excinfo.value.returncode == 3
    assert excinfo.value.stderr == "broken\n"
    assert "echo broken >&2; exit 3" in str(excinfo.value)
    assert "broken" in str(excinfo.value)
    assert syscall.last_status == 3


def test_call_error_suppressed(syscall: Syscall) -> None:
    """throw_errors=False returns the output and records the status."""
    result = syscall.create("echo partial; exit 5").call(throw_errors=False)
    assert result == ExecutionResult(stdout="partial\n")
    assert syscall.last_status == 5

    syscall.create("true").call()
    assert syscall.last_status == 0


def test_call_with_cwd(syscall: Syscall, tmp_path: pathlib.Path) -> None:
    """with_cwd() runs the command in that directory."""
    result = syscall.create("pwd").with_cwd(tmp_path).call()
    assert result.stdout is not None
    assert result.stdout.strip() in {str(tmp_path), str(tmp_path.resolve())}


def test_call_forces_posix_shell(
    syscall: Syscall,
    process_host: ProcessHost,
    user_shell: str,
) -> None:
    """A non-POSIX user shell is replaced while a command runs."""
    process_host.shell = user_shell

    result = syscall.create('echo "$SHELL"').call()

    assert result.stdout == "/bin/sh\n"
    assert process_host.shell == user_shell


def test_usable_shell_pattern(
    syscall: Syscall,
    process_host: ProcessHost,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """set_usable_shell() widens what counts as usable."""
    monkeypatch.setenv("SHELL", "/bin/sh")
    process_host.shell = "/bin/sh"
    syscall.set_usable_shell(r"^/bin/(ba)?sh$")
    assert syscall.create('echo "$SHELL"').call().stdout == "/bin/sh\n"


class WrongTypeFixture(t.NamedTuple):
    """Test fixture for test_wrong_type_arguments()."""

    test_id: str
    method: str
    kwargs: dict[str, t.Any]


WRONG_TYPE_FIXTURES: list[WrongTypeFixture] = [
    WrongTypeFixture(
        test_id="call_throw_errors",
        method="call",
        kwargs={"throw_errors": 1},
    ),
    WrongTypeFixture(
        test_id="foreground_pause",
        method="call_foreground",
        kwargs={"pause": "yes"},
    ),
    WrongTypeFixture(
        test_id="foreground_throw_errors",
        method="call_foreground",
        kwargs={"throw_errors": None},
    ),
    WrongTypeFixture(
        test_id="async_callback",
        method="call_async",
        kwargs={"callback": "not callable"},
    ),
    WrongTypeFixture(
        test_id="async_allow_sync_fallback",
        method="call_async",
        kwargs={"callback": print, "allow_sync_fallback": 0},
    ),
    WrongTypeFixture(
        test_id="async_throw_errors",
        method="call_async",
        kwargs={"callback": print, "throw_errors": "no"},
    ),
]


@pytest.mark.parametrize(
    list(WrongTypeFixture._fields),
    WRONG_TYPE_FIXTURES,
    ids=[test.test_id for test in WRONG_TYPE_FIXTURES],
)
def test_wrong_type_arguments(
    test_id: str,
    method: str,
    kwargs: dict[str, t.Any],
    syscall: Syscall,
    tmp_path: pathlib.Path,
) -> None:
    """Arguments of the wrong type are rejected before anything runs."""
    marker = tmp_path / "ran"
    command = syscall.create(["touch", str(marker)])

    with pytest.raises(exc.WrongType):
        getattr(command, method)(**kwargs)

    assert not marker.exists()
    assert len(syscall.registry) == 0


def test_foreground_call(
    syscall: Syscall,
    tmp_path: pathlib.Path,
) -> None:
    """Foreground calls run the command and return an empty result."""
    marker = tmp_path / "ran"
    result = syscall.create(["touch", str(marker)]).call_foreground()

    assert result == ExecutionResult()
    assert marker.exists()
    assert syscall.last_status == 0


def test_foreground_error(syscall: Syscall) -> None:
    """Foreground calls raise on a non-zero exit unless told not to."""
    with pytest.raises(exc.ShellError) as excinfo:
        syscall.create("exit 2").call_foreground()
    assert excinfo.value.returncode == 2

    syscall.create("exit 4").call_foreground(throw_errors=False)
    assert syscall.last_status == 4


def test_foreground_pause(
    syscall: Syscall,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """pause=True waits for the user after the command."""
    prompts: list[str] = []
    monkeypatch.setattr("builtins.input", prompts.append)

    syscall.create("true").call_foreground(pause=True)
    syscall.create("true").call_foreground(pause=False)

    assert prompts == ["Press ENTER to continue"]


def test_foreground_stdin_unsupported(
    syscall: Syscall,
    tmp_path: pathlib.Path,
) -> None:
    """A stdin payload is refused and the command is never started."""
    marker = tmp_path / "ran"
    command = syscall.create(["touch", str(marker)]).with_stdin("data")

    with pytest.raises(exc.Unsupported):
        command.call_foreground()

    assert not marker.exists()


def test_async_unavailable_not_serving(
    syscall: Syscall,
    tmp_path: pathlib.Path,
) -> None:
    """Without a server name and no fallback, call_async() raises."""
    marker = tmp_path / "ran"
    calls: list[ExecutionResult] = []

    assert not syscall.is_async_available()
    assert syscall.async_unavailable_reason() == "no server name"

    with pytest.raises(exc.AsyncUnavailable) as excinfo:
        syscall.create(["touch", str(marker)]).call_async(
            lambda environment, result: calls.append(result),
        )

    assert isinstance(excinfo.value, exc.ShellError)
    assert "no server name" in str(excinfo.value)
    assert not marker.exists()
    assert calls == []
    assert len(syscall.registry) == 0


def test_async_unavailable_no_clientserver(
    syscall: Syscall,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Hosts without client/server support never dispatch."""
    monkeypatch.setattr(
        ProcessHost,
        "has_clientserver",
        property(lambda self: False),
    )
    assert syscall.async_unavailable_reason() == (
        "client/server support not available"
    )
    with pytest.raises(exc.AsyncUnavailable):
        syscall.create("true").call_async(print)


def test_async_sync_fallback(
    syscall: Syscall,
    process_host: ProcessHost,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """The fallback runs blocking and calls back before returning."""
    process_host.buffer = 7
    process_host.path = "/src/app.py"
    calls: list[tuple[ExecutionEnvironment, ExecutionResult]] = []

    with caplog.at_level(logging.WARNING, logger="libsyscall.syscall"):
        result = syscall.create("echo fallback; echo warn >&2; exit 6").call_async(
            lambda environment, result: calls.append((environment, result)),
            allow_sync_fallback=True,
        )

    assert len(calls) == 1
    environment, called_with = calls[0]
    assert called_with is result
    assert result.stdout == "fallback\n"
    assert result.stderr == "warn\n"
    assert result.status == 6
    assert environment.buffer == 7
    assert environment.path == "/src/app.py"
    assert syscall.last_status == 6
    assert "running synchronously" in caplog.text


def test_unbound_command_uses_fresh_syscall() -> None:
    """Commands built with libsyscall.create() run without setup."""
    from libsyscall import create

    assert create(["echo", "free"]).call().stdout == "free\n"


def test_independent_instances(process_host: ProcessHost) -> None:
    """Separate Syscall objects keep separate status and registries."""
    from libsyscall.syscall import Syscall

    first = Syscall(host=process_host)
    second = Syscall(host=process_host)

    first.create("exit 1").call(throw_errors=False)
    assert first.last_status == 1
    assert second.last_status == 0
    assert first.registry is not second.registry
    assert first.completion_function != second.completion_function
    assert first.completion_function in process_host.functions
    assert second.completion_function in process_host.functions


def test_close_unregisters_completion_handler(process_host: ProcessHost) -> None:
    """close() removes the handler so a shared host does not keep it alive."""
    from libsyscall.syscall import Syscall

    syscall = Syscall(host=process_host)
    other = Syscall(host=process_host)
    assert syscall.completion_function in process_host.functions

    syscall.close()

    assert syscall.completion_function not in process_host.functions
    assert other.completion_function in process_host.functions
    assert syscall.create(["echo", "still usable"]).call().stdout == (
        "still usable\n"
    )
