"""Command line interface for OpenAPI to TypeScript generation."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from .errors import GenerationError
from .generator import run_generation
from .model_types import MODES
from .version import __version__


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="openapi-to-typescript-generator",
        description="Generate TypeScript models, Express controllers or fetch clients from OpenAPI YAML",
    )
    parser.add_argument("--input", required=True, help="Path to an OpenAPI YAML file")
    parser.add_argument(
        "--mode",
        required=True,
        choices=MODES,
        help="'api' for abstract Express controllers, 'client' for fetch clients",
    )
    parser.add_argument("--output", required=True, help="Output directory for generated sources")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Regenerate even when the output is up to date with the input",
    )
    parser.add_argument(
        "--format",
        action="store_true",
        help="Format the generated files with prettier (via npx)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        result = run_generation(
            input_path=Path(args.input),
            output_dir=Path(args.output),
            mode=args.mode,
            force=bool(args.force),
            format_output=bool(args.format),
        )
    except GenerationError as exc:
        parser.error(str(exc))
        return 2

    if result.skipped:
        print(f"{args.output} is up to date; use --force to regenerate")
        return 0

    for warning in result.warnings:
        print(f"Warning: {warning}")
    print(f"Generated {len(result.written_files)} files in {result.output_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
