"""versolve: Best-first package version resolution for package registries."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
