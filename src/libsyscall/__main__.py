"""Entrypoint for running libsyscall as a module."""

from __future__ import annotations

from libsyscall.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
