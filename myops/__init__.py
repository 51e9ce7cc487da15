"""Task synchronisation core of the myops personal-operations dashboard."""

from __future__ import annotations

__version__ = "0.4.0"

__all__ = ["__version__"]
