"""Constants for libsyscall."""

from __future__ import annotations

#: Pattern a shell must match to be used as-is during an execution
DEFAULT_USABLE_SHELL = r"^/bin/sh$"

#: Shell forced while executing when the configured one is not usable
FALLBACK_SHELL = "/bin/sh"

#: Characters that never need quoting when rendering a word list
SAFE_WORD_PATTERN = r"^[A-Za-z0-9._:=/-]+$"

#: Prefix for temporary files holding output of asynchronous calls
TEMP_PREFIX = "libsyscall-"

#: Name under which a :class:`~libsyscall.syscall.Syscall` registers its
#: completion handler with the host, suffixed by an instance token
COMPLETION_FUNCTION_PREFIX = "libsyscall.complete."

#: Subcommand of ``python -m libsyscall`` used by background jobs
NOTIFY_SUBCOMMAND = "notify"
