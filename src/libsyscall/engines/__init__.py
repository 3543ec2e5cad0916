"""Execution engines for libsyscall."""

from __future__ import annotations

from .async_callback import AsyncCallbackEngine
from .base import ExecutionEngine, ExecutionResult, Outcome
from .blocking import BlockingEngine
from .foreground import ForegroundEngine

__all__ = [
    "AsyncCallbackEngine",
    "BlockingEngine",
    "ExecutionEngine",
    "ExecutionResult",
    "ForegroundEngine",
    "Outcome",
]
