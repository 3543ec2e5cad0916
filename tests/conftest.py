"""Fixtures for libsyscall tests."""

from __future__ import annotations

import typing as t

import pytest_asyncio

if t.TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from libsyscall.host import ProcessHost


@pytest_asyncio.fixture
async def serving_host(process_host: ProcessHost) -> AsyncIterator[ProcessHost]:
    """Return :func:`process_host` accepting remote calls on the test's loop.

    The server name is only valid while the test runs.
    """
    async with process_host.serve():
        yield process_host
