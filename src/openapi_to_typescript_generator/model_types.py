"""Internal datatypes for generation results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

Mode: TypeAlias = Literal["api", "client"]

MODES: tuple[str, ...] = ("api", "client")


@dataclass(frozen=True)
class GeneratedFile:
    """One generated file, relative to the output directory."""

    path: str
    content: str


@dataclass(frozen=True)
class GeneratedTree:
    """Every file of one generation, built in memory before anything is written."""

    files: tuple[GeneratedFile, ...]
    warnings: tuple[str, ...]


@dataclass(frozen=True)
class GenerationResult:
    """Generation output metadata."""

    output_dir: str
    written_files: tuple[str, ...]
    warnings: tuple[str, ...]
    skipped: bool
