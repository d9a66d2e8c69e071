"""Runtime-support TypeScript files copied verbatim into every output tree."""

from __future__ import annotations

from importlib import resources

from .model_types import GeneratedFile, Mode
from .text import FILE_HEADER

_STATIC_PACKAGE = __package__ or "openapi_to_typescript_generator"

STATIC_FILES: dict[str, tuple[str, ...]] = {
    "api": ("base-api.ts", "validate.ts"),
    "client": ("base-client.ts", "validate.ts"),
}


def static_files(mode: Mode) -> list[GeneratedFile]:
    """Return the support files needed by ``mode``."""
    root = resources.files(_STATIC_PACKAGE).joinpath("static")
    return [
        GeneratedFile(
            path=name,
            content=f"{FILE_HEADER}\n{root.joinpath(name).read_text(encoding='utf-8')}",
        )
        for name in STATIC_FILES[mode]
    ]
