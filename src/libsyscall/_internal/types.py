"""Internal type annotations.

Notes
-----
:class:`StrPath` is based on `typeshed's`_.

.. _typeshed's: https://github.com/python/typeshed/blob/5ff32f3/stdlib/_typeshed/__init__.pyi#L176-L179
"""  # E501

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from collections.abc import Callable
    from os import PathLike
    from typing import TypeAlias

    from libsyscall.host import ExecutionEnvironment
    from libsyscall.engines.base import ExecutionResult

StrPath: TypeAlias = "str | PathLike[str]"

#: A word list or literal string accepted by :func:`libsyscall.command.create`
CommandSpec: TypeAlias = "str | list[str] | tuple[str, ...]"

#: Handler invoked once an asynchronous call completes
AsyncCallback: TypeAlias = "Callable[[ExecutionEnvironment, ExecutionResult], t.Any]"
