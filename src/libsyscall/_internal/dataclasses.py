""":mod:`dataclasses` utilities.

Note
----
This is an internal API not covered by versioning policy.
"""

from __future__ import annotations

import dataclasses
import typing as t
from operator import attrgetter

if t.TYPE_CHECKING:
    from _typeshed import DataclassInstance


class SkipDefaultFieldsReprMixin:
    r"""Skip default fields in :func:`~dataclasses.dataclass` object representation.

    Fields declared with ``repr=False`` are omitted as well.

    Notes
    -----
    Credit: Pietro Oldrati, 2022-05-08, Unilicense

    https://stackoverflow.com/a/72161437/1396928

    Examples
    --------
    >>> @dataclasses.dataclass(repr=False)
    ... class Output(SkipDefaultFieldsReprMixin):
    ...     stdout: t.Optional[str] = None
    ...     stderr: t.Optional[str] = None
    ...     status: t.Optional[int] = None
    ...

    >>> Output()
    Output()

    >>> Output(stdout='x\n')
    Output(stdout='x\n')

    >>> Output(stdout='', status=3)
    Output(stdout='', status=3)
    """

    def __repr__(self: DataclassInstance) -> str:
        """Omit default fields in object representation."""
        nodef_f_vals = (
            (f.name, attrgetter(f.name)(self))
            for f in dataclasses.fields(self)
            if f.repr and attrgetter(f.name)(self) != f.default
        )

        nodef_f_repr = ", ".join(f"{name}={value!r}" for name, value in nodef_f_vals)
        return f"{self.__class__.__name__}({nodef_f_repr})"
