"""Terminal front-end."""

from . import cli, narrator

__all__ = ["cli", "narrator"]
