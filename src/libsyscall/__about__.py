"""Metadata package for libsyscall."""

from __future__ import annotations

__title__ = "libsyscall"
__package_name__ = "libsyscall"
__version__ = "0.1.0"
__description__ = "Build and run shell commands for editor extensions"
__email__ = "maintainers@libsyscall.dev"
__author__ = "libsyscall contributors"
__github__ = "https://github.com/libsyscall/libsyscall"
__docs__ = "https://github.com/libsyscall/libsyscall#readme"
__tracker__ = "https://github.com/libsyscall/libsyscall/issues"
__pypi__ = "https://pypi.org/project/libsyscall/"
__license__ = "MIT"
__copyright__ = "Copyright 2026- libsyscall contributors"
