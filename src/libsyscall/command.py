"""Build shell commands.

libsyscall.command
~~~~~~~~~~~~~~~~~~

A :class:`Command` is an immutable value: every builder method returns a new
command layered on top of the old one. Word lists are escaped only when the
command is rendered by :meth:`Command.get_command`.
"""

from __future__ import annotations

import dataclasses
import logging
import pathlib
import re
import typing as t

from libsyscall import exc
from libsyscall._internal.dataclasses import SkipDefaultFieldsReprMixin
from libsyscall.constants import SAFE_WORD_PATTERN

if t.TYPE_CHECKING:
    from libsyscall._internal.types import AsyncCallback, CommandSpec, StrPath
    from libsyscall.engines.base import ExecutionResult
    from libsyscall.syscall import Syscall

logger = logging.getLogger(__name__)

_SAFE_WORD = re.compile(SAFE_WORD_PATTERN)


def escape_word(word: str) -> str:
    """Strip ``word`` and quote it unless it is made of safe characters only.

    Safe characters are ``A-Z a-z 0-9 . _ : = / -``. Anything else, including
    characters a shell would not mind such as ``%`` or ``+``, gets the word
    single-quoted.

    Examples
    --------
    >>> escape_word('--count=3')
    '--count=3'
    >>> escape_word(' /tmp/my file ')
    "'/tmp/my file'"
    >>> escape_word('')
    "''"
    >>> print(escape_word("it's"))
    'it'"'"'s'
    """
    word = word.strip()
    if _SAFE_WORD.match(word):
        return word
    return "'" + word.replace("'", "'\"'\"'") + "'"


@dataclasses.dataclass(frozen=True, repr=False)
class Command(SkipDefaultFieldsReprMixin):
    """A shell command, its stdin and the :class:`Syscall` that runs it.

    Build commands with :func:`create` or :meth:`Syscall.create`.

    Examples
    --------
    >>> cmd = create(['grep', '-n', 'TODO list', 'notes.txt'])
    >>> cmd
    Command(spec=('grep', '-n', 'TODO list', 'notes.txt'))
    >>> cmd.get_command()
    "grep -n 'TODO list' notes.txt"
    >>> cmd.or_('true').get_command()
    "grep -n 'TODO list' notes.txt || true"
    """

    spec: str | tuple[str, ...]
    stdin: str | None = None
    syscall: Syscall | None = dataclasses.field(
        default=None,
        compare=False,
        repr=False,
    )

    def get_command(self) -> str:
        """Render the command line.

        A literal string is returned verbatim; each word of a word list is
        passed through :func:`escape_word` and the results are joined with
        spaces.
        """
        if isinstance(self.spec, str):
            return self.spec
        return " ".join(escape_word(word) for word in self.spec)

    def with_cwd(self, directory: StrPath) -> Command:
        """Return a command that changes into ``directory`` first.

        If ``directory`` is a file, its parent directory is used.

        Raises
        ------
        :exc:`exc.NotFound`
            The directory does not exist.
        """
        path = pathlib.Path(directory).expanduser()
        if path.is_file():
            path = path.parent
        if not path.is_dir():
            raise exc.NotFound(str(path))

        cd = create(["cd", str(path)], syscall=self.syscall)
        return dataclasses.replace(
            self,
            spec=f"{cd.get_command()} && {self.get_command()}",
        )

    def with_stdin(self, text: str) -> Command:
        """Return a command that is fed ``text`` on stdin.

        Raises
        ------
        :exc:`exc.WrongType`
            ``text`` is not a string.
        """
        if not isinstance(text, str):
            raise exc.WrongType("stdin", "a string", text)
        return dataclasses.replace(self, stdin=text)

    def and_(self, other: CommandSpec | Command) -> Command:
        """Return ``self && other``."""
        return self._join("&&", other)

    def or_(self, other: CommandSpec | Command) -> Command:
        """Return ``self || other``."""
        return self._join("||", other)

    def _join(self, operator: str, other: CommandSpec | Command) -> Command:
        right = create(other, syscall=self.syscall)
        return dataclasses.replace(
            self,
            spec=f"{self.get_command()} {operator} {right.get_command()}",
        )

    def _runner(self) -> Syscall:
        if self.syscall is not None:
            return self.syscall
        from libsyscall.syscall import Syscall

        return Syscall()

    def call(self, throw_errors: bool = True) -> ExecutionResult:
        """Run the command and capture its output.

        See :meth:`libsyscall.syscall.Syscall.call`.
        """
        return self._runner().call(self, throw_errors=throw_errors)

    def call_foreground(
        self,
        pause: bool = False,
        throw_errors: bool = True,
    ) -> ExecutionResult:
        """Run the command on the host's terminal.

        See :meth:`libsyscall.syscall.Syscall.call_foreground`.
        """
        return self._runner().call_foreground(
            self,
            pause=pause,
            throw_errors=throw_errors,
        )

    def call_async(
        self,
        callback: AsyncCallback,
        allow_sync_fallback: bool = False,
        throw_errors: bool = True,
    ) -> ExecutionResult:
        """Run the command in the background and call ``callback`` when done.

        See :meth:`libsyscall.syscall.Syscall.call_async`.
        """
        return self._runner().call_async(
            self,
            callback,
            allow_sync_fallback=allow_sync_fallback,
            throw_errors=throw_errors,
        )


def create(
    spec: CommandSpec | Command,
    syscall: Syscall | None = None,
) -> Command:
    """Return a :class:`Command` for ``spec``.

    Parameters
    ----------
    spec : str, list of str, tuple of str or :class:`Command`
        A string is used as an already escaped command line. A list or tuple
        is a sequence of words escaped on render. A :class:`Command` is
        returned unchanged.
    syscall : :class:`~libsyscall.syscall.Syscall`, optional
        Subsystem the command runs on. Unbound commands run on a fresh
        :class:`~libsyscall.syscall.Syscall` per call.

    Raises
    ------
    :exc:`exc.WrongType`
        ``spec`` has any other shape.

    Examples
    --------
    >>> cmd = create('ls -la')
    >>> create(cmd) is cmd
    True
    >>> create(['echo', 42])
    Traceback (most recent call last):
    ...
    libsyscall.exc.WrongType: Expected command word to be a string, got int: 42
    """
    if isinstance(spec, Command):
        return spec
    if isinstance(spec, str):
        return Command(spec=spec, syscall=syscall)
    if isinstance(spec, (list, tuple)):
        for word in spec:
            if not isinstance(word, str):
                raise exc.WrongType("command word", "a string", word)
        return Command(spec=tuple(spec), syscall=syscall)
    raise exc.WrongType("command", "a string or a list of strings", spec)
