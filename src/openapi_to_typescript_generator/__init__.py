"""Generate TypeScript sources from OpenAPI documents."""

from __future__ import annotations

from .cli import main
from .generator import generate_files, run_generation
from .version import __version__

__all__ = ["__version__", "generate_files", "main", "run_generation"]
