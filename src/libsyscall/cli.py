"""Command-line interface for libsyscall."""

from __future__ import annotations

import argparse
import logging
import sys

from libsyscall import exc
from libsyscall.constants import NOTIFY_SUBCOMMAND
from libsyscall.remote import send_expression

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Return the argument parser for ``python -m libsyscall``."""
    parser = argparse.ArgumentParser(
        prog="libsyscall",
        description="libsyscall helpers for background jobs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    notify = subparsers.add_parser(
        NOTIFY_SUBCOMMAND,
        help="Report a finished background job to its host.",
    )
    notify.add_argument("--server", required=True, help="Host server name.")
    notify.add_argument("--function", required=True, help="Completion handler.")
    notify.add_argument("--timeout", type=float, default=30.0)
    notify.add_argument("stdout_path")
    notify.add_argument("stderr_path")
    notify.add_argument("status")

    run = subparsers.add_parser("run", help="Run a command and print its output.")
    run.add_argument("--cwd", help="Directory to run the command in.")
    run.add_argument("words", nargs="+", help="Command words, escaped as needed.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the libsyscall CLI.

    Parameters
    ----------
    argv : list[str] | None
        CLI arguments (excluding the program name).

    Returns
    -------
    int
        Exit status code. For ``run``, the command's own exit status.

    Examples
    --------
    >>> main(['run', 'echo', 'hello world'])
    hello world
    0
    """
    args = create_parser().parse_args(argv)

    if args.command == NOTIFY_SUBCOMMAND:
        try:
            send_expression(
                args.server,
                args.function,
                [args.stdout_path, args.stderr_path, args.status],
                timeout=args.timeout,
            )
        except exc.RemoteError as e:
            print(f"libsyscall: {e}", file=sys.stderr)
            return 1
        return 0

    if args.command == "run":
        from libsyscall.syscall import Syscall

        syscall = Syscall()
        command = syscall.create(args.words)
        try:
            if args.cwd:
                command = command.with_cwd(args.cwd)
        except exc.NotFound as e:
            print(f"libsyscall: {e}", file=sys.stderr)
            return 1
        result = syscall.call(command, throw_errors=False)
        sys.stdout.write(result.stdout or "")
        sys.stderr.write(result.stderr or "")
        return syscall.last_status

    msg = f"Unsupported command: {args.command}"
    raise ValueError(msg)
