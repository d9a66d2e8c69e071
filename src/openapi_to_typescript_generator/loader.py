"""OpenAPI document loading and basic validation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from openapi_python_client.schema import OpenAPI
from pydantic import ValidationError

from .errors import GenerationError
from .json_types import JSONObject


class OpenAPILoadError(GenerationError):
    """Raised when a source OpenAPI document cannot be loaded."""


@dataclass(frozen=True)
class DocumentParts:
    """The parts of a document the generator consumes."""

    schemas: Mapping[str, Any]
    paths: Mapping[str, Any]
    tags: list[Any]


def read_openapi_text(path: Path) -> str:
    """Read the raw text of an OpenAPI document."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise OpenAPILoadError(f"Failed to read OpenAPI file {path}: {exc}") from exc


def parse_openapi_document(text: str, *, source: str) -> JSONObject:
    """Parse and validate an OpenAPI document from YAML text.

    Args:
        text (str): YAML (or JSON) text of the document.
        source (str): Where the text came from, for error messages.

    Returns:
        JSONObject: The parsed document, with key order preserved.
    """
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise OpenAPILoadError(f"Failed to parse YAML in {source}: {exc}") from exc

    if not isinstance(payload, dict):
        raise OpenAPILoadError(
            f"OpenAPI document must deserialize to a mapping, got {type(payload)!r}"
        )

    ensure_supported_version(get_openapi_version(payload))
    try:
        OpenAPI.model_validate(payload)
    except ValidationError as exc:
        raise OpenAPILoadError(f"OpenAPI schema validation failed for {source}: {exc}") from exc

    return payload


def load_openapi_document(path: Path) -> JSONObject:
    """Load and validate an OpenAPI document from a YAML file."""
    return parse_openapi_document(read_openapi_text(path), source=str(path))


def get_openapi_version(document: JSONObject) -> str:
    """Return the declared OpenAPI version string."""
    version = document.get("openapi")
    if not isinstance(version, str) or not version.strip():
        raise OpenAPILoadError("Missing or invalid 'openapi' version field")
    return version.strip()


def ensure_supported_version(version: str) -> None:
    """Validate that the input version is OpenAPI v3+."""
    major_text = version.split(".", maxsplit=1)[0]
    try:
        major = int(major_text)
    except ValueError as exc:
        raise OpenAPILoadError(f"Unable to parse OpenAPI version: {version}") from exc
    if major < 3:
        raise OpenAPILoadError(f"Unsupported OpenAPI version {version}; only v3+ is supported")


def document_parts(document: JSONObject) -> DocumentParts:
    """Return ``components.schemas``, ``paths`` and ``tags`` of a document."""
    components = document.get("components")
    if not isinstance(components, Mapping):
        raise OpenAPILoadError("Expected components to be defined")
    schemas = components.get("schemas")
    if not isinstance(schemas, Mapping):
        raise OpenAPILoadError("Expected components.schemas to be defined")
    paths = document.get("paths")
    if not isinstance(paths, Mapping):
        raise OpenAPILoadError("OpenAPI document missing 'paths' object")
    tags = document.get("tags", [])
    if not isinstance(tags, list):
        raise OpenAPILoadError("Expected top-level 'tags' to be a list")
    return DocumentParts(schemas=schemas, paths=paths, tags=tags)
