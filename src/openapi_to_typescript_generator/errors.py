"""Error taxonomy for TypeScript generation."""

from __future__ import annotations


class GenerationError(RuntimeError):
    """Base class for every fatal generation failure."""


class InvalidIdentifierError(GenerationError):
    """Raised when a schema or tag name cannot be turned into identifiers."""


class ConflictingDefaultImportError(GenerationError):
    """Raised when one module is default-imported under two different aliases."""


class MalformedReferenceError(GenerationError):
    """Raised when a ``$ref`` does not point into ``#/components/schemas``."""


class UnsupportedSchemaShapeError(GenerationError):
    """Raised when a schema node has a shape the resolver does not support."""


class UnsupportedParameterTypeError(GenerationError):
    """Raised when a schema cannot be read from a URL path or query string."""


class OperationShapeViolationError(GenerationError):
    """Raised when an operation breaks the supported operation layout."""


def format_context(context: tuple[str, ...] | list[str]) -> str:
    """Join a context path into the dotted form used in error messages."""
    return ".".join(context) or "<root>"
