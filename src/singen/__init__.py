"""Top-level package for the singen sine-table generator."""

__version__ = "0.3.0"

# Re-export the rendering namespace for convenience when used as a library.
from . import render  # noqa: F401

__all__ = ["render", "__version__"]
