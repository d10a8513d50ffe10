# fedlex_mirror/__init__.py
"""
fedlex_mirror package initializer.
Defines package version and exposes the CLI group.
"""
__version__ = "0.1.0"

from .cli import cli  # noqa: E402

__all__ = ["__version__", "cli"]
