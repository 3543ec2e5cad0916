"""libsyscall, build and run shell commands on behalf of an editor."""

from .__about__ import (
    __author__,
    __copyright__,
    __description__,
    __email__,
    __license__,
    __package_name__,
    __title__,
    __version__,
)
from .command import Command, create
from .engines import ExecutionResult
from .host import ExecutionEnvironment, ProcessHost
from .registry import CallbackRegistry
from .syscall import Syscall

__all__ = (
    "CallbackRegistry",
    "Command",
    "ExecutionEnvironment",
    "ExecutionResult",
    "ProcessHost",
    "Syscall",
    "__author__",
    "__copyright__",
    "__description__",
    "__email__",
    "__license__",
    "__package_name__",
    "__title__",
    "__version__",
    "create",
)
