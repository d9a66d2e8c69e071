"""Generator version, part of the content hash of every generated tree."""

from __future__ import annotations

__version__ = "0.1.0"
