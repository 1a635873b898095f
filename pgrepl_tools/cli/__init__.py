"""
CLI module for pgrepl-tools.

Provides the ``pgrepl`` entry point and the per-command entry points that
are also installed as standalone console scripts.
"""

from .commands import main

__all__ = ["main"]
