"""Filesystem output of generated TypeScript trees."""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from .errors import GenerationError
from .model_types import GeneratedTree, Mode
from .version import __version__

logger = logging.getLogger(__name__)

HASH_FILE_NAME = ".openapi-hash"


class WriteError(GenerationError):
    """Raised when output files cannot be written."""


def content_hash(spec_text: str, mode: Mode) -> str:
    """Digest of everything that determines the generated tree."""
    digest = hashlib.sha256()
    for part in (__version__, mode, spec_text):
        digest.update(part.encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


def stored_hash(output_dir: Path) -> Optional[str]:
    """Return the hash recorded by the previous generation, if any."""
    try:
        return (output_dir / HASH_FILE_NAME).read_text(encoding="utf-8").strip() or None
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise WriteError(f"Failed to read {HASH_FILE_NAME} in {output_dir}: {exc}") from exc


def write_tree(*, output_dir: Path, tree: GeneratedTree, digest: str) -> list[Path]:
    """Replace ``output_dir`` with the generated tree.

    The directory is only removed when it is empty or was produced by an
    earlier generation, identified by its hash file.

    Args:
        output_dir (Path): Root output directory.
        tree (GeneratedTree): Files to write.
        digest (str): Content hash recorded for the next run.

    Returns:
        list[Path]: Paths of every written file, hash file last.
    """
    _reset_output_dir(output_dir)

    written: list[Path] = []
    for generated in tree.files:
        path = output_dir / generated.path
        _write_file(path, generated.content)
        logger.debug("Wrote %s", path)
        written.append(path)

    hash_path = output_dir / HASH_FILE_NAME
    _write_file(hash_path, f"{digest}\n")
    written.append(hash_path)
    return written


def _reset_output_dir(output_dir: Path) -> None:
    if output_dir.exists():
        if not output_dir.is_dir():
            raise WriteError(f"Output path exists and is not a directory: {output_dir}")
        generated_before = (output_dir / HASH_FILE_NAME).is_file()
        if not generated_before and any(output_dir.iterdir()):
            raise WriteError(
                f"Output directory {output_dir} is not empty and was not generated by this tool"
            )
        try:
            shutil.rmtree(output_dir)
        except OSError as exc:
            raise WriteError(f"Failed to clear output directory {output_dir}: {exc}") from exc
    try:
        output_dir.mkdir(parents=True)
    except OSError as exc:
        raise WriteError(f"Failed to create output directory {output_dir}: {exc}") from exc


def format_generated_tree(*, output_dir: Path) -> None:
    """Run prettier over the generated TypeScript files.

    Args:
        output_dir (Path): Generated output directory to format.
    """
    npx = "npx.cmd" if os.name == "nt" else "npx"
    command = [npx, "--no-install", "prettier", "--write", "--parser", "typescript", "."]
    try:
        subprocess.run(
            command,
            cwd=output_dir,
            check=True,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise WriteError(f"Failed to execute prettier for {output_dir}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        error_text = exc.stderr.strip() or exc.stdout.strip() or str(exc)
        raise WriteError(f"prettier failed for {output_dir}: {error_text}") from exc


def _write_file(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Failed to write file {path}: {exc}") from exc
