"""Classification of OpenAPI schema nodes into the supported shapes.

Each supported shape is a frozen dataclass; :func:`classify_schema` checks the
node's keys against the shape it selects and rejects anything it does not
recognize. :func:`build_registry` is the first generation pass: it records
whether each named component is a string enum or an object so that references
can be resolved without consulting any global state.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional, TypeAlias, Union

from .errors import (
    InvalidIdentifierError,
    MalformedReferenceError,
    UnsupportedSchemaShapeError,
    format_context,
)
from .identifier import Identifier
from .json_types import SchemaNode

ANNOTATION_KEYS: frozenset[str] = frozenset({"description", "title", "example"})
STRING_FORMATS: tuple[str, ...] = ("email", "date", "date-time")

_REFERENCE_RE = re.compile(r"^#/components/schemas/(\w+)$")
_COMPOSITION_KEYS: tuple[str, ...] = ("anyOf", "allOf", "not", "discriminator")


@dataclass(frozen=True)
class ReferenceShape:
    """``$ref`` to a named component schema."""

    ref: str
    name: Identifier


@dataclass(frozen=True)
class OneOfShape:
    """Union of alternative schemas, tried in declaration order."""

    options: tuple[SchemaNode, ...]


@dataclass(frozen=True)
class BooleanShape:
    """Plain boolean."""


@dataclass(frozen=True)
class NumberShape:
    """Number, optionally restricted to integral values."""

    integer: bool


@dataclass(frozen=True)
class StringShape:
    """String with optional length bounds and format."""

    min_length: Optional[int]
    max_length: Optional[int]
    format: Optional[str]


@dataclass(frozen=True)
class EnumShape:
    """String restricted to a list of known values."""

    values: tuple[str, ...]


@dataclass(frozen=True)
class MapShape:
    """Object used as a string-keyed map of one value schema."""

    values: SchemaNode


@dataclass(frozen=True)
class ArrayShape:
    """Sequence of one item schema."""

    items: SchemaNode


@dataclass(frozen=True)
class ObjectShape:
    """Object with named properties."""

    properties: Mapping[str, SchemaNode]
    required: frozenset[str]


SchemaShape: TypeAlias = Union[
    ReferenceShape,
    OneOfShape,
    BooleanShape,
    NumberShape,
    StringShape,
    EnumShape,
    MapShape,
    ArrayShape,
    ObjectShape,
]


def parse_reference(ref: str) -> Identifier:
    """Return the identifier of the component named by ``ref``."""
    match = _REFERENCE_RE.match(ref)
    if match is None:
        raise MalformedReferenceError(
            f"Expected ref to be of form '#/components/schemas/<Name>', but found: {ref!r}"
        )
    return Identifier.from_camel(match.group(1))


def classify_schema(schema: Any, context: tuple[str, ...]) -> SchemaShape:
    """Classify ``schema`` into exactly one supported shape.

    Args:
        schema (Any): Schema node or reference as parsed from the document.
        context (tuple[str, ...]): Location of the node, used in error messages.

    Returns:
        SchemaShape: The shape the node represents.
    """
    where = format_context(context)
    if not isinstance(schema, Mapping):
        raise UnsupportedSchemaShapeError(f"Expected a schema object at '{where}', got {schema!r}")

    keys = set(schema) - ANNOTATION_KEYS
    if "$ref" in schema:
        _reject_unexpected("schema reference", keys, {"$ref"}, where)
        ref = schema["$ref"]
        if not isinstance(ref, str):
            raise MalformedReferenceError(f"Expected '$ref' of '{where}' to be a string")
        return ReferenceShape(ref=ref, name=parse_reference(ref))

    for key in _COMPOSITION_KEYS:
        if key in schema:
            raise UnsupportedSchemaShapeError(f"Unsupported '{key}' in schema '{where}'")

    if "oneOf" in schema:
        _reject_unexpected("oneOf schema", keys, {"oneOf"}, where)
        options = schema["oneOf"]
        if not isinstance(options, list) or not options:
            raise UnsupportedSchemaShapeError(
                f"Expected 'oneOf' of '{where}' to be a non-empty list of schemas"
            )
        return OneOfShape(options=tuple(options))

    schema_type = schema.get("type")
    if schema_type == "string":
        if "enum" in schema:
            return _classify_enum(schema, keys, where)
        return _classify_string(schema, keys, where)
    if schema_type == "boolean":
        _reject_unexpected("boolean schema", keys, {"type"}, where)
        return BooleanShape()
    if schema_type in ("number", "integer"):
        _reject_unexpected(f"{schema_type} schema", keys, {"type"}, where)
        return NumberShape(integer=schema_type == "integer")
    if schema_type == "array":
        _reject_unexpected("array schema", keys, {"type", "items"}, where)
        items = schema.get("items")
        if not isinstance(items, Mapping):
            raise UnsupportedSchemaShapeError(f"Expected 'items' inside '{where}'")
        return ArrayShape(items=items)
    if schema_type == "object":
        if "properties" in schema:
            return _classify_object(schema, keys, where)
        return _classify_map(schema, keys, where)
    if schema_type is None:
        raise UnsupportedSchemaShapeError(f"Missing 'type' of schema '{where}'")
    raise UnsupportedSchemaShapeError(f"Unexpected type {schema_type!r} of '{where}'")


def _classify_enum(schema: SchemaNode, keys: set[str], where: str) -> EnumShape:
    _reject_unexpected("enum schema", keys, {"type", "enum"}, where)
    values = schema["enum"]
    if (
        not isinstance(values, list)
        or not values
        or not all(isinstance(value, str) for value in values)
    ):
        raise UnsupportedSchemaShapeError(
            f"Expected 'enum' of '{where}' to be a non-empty list of strings"
        )
    if len(set(values)) != len(values):
        raise UnsupportedSchemaShapeError(f"Duplicate values in 'enum' of '{where}'")
    return EnumShape(values=tuple(values))


def _classify_string(schema: SchemaNode, keys: set[str], where: str) -> StringShape:
    string_format = schema.get("format")
    if string_format is not None and string_format not in STRING_FORMATS:
        raise UnsupportedSchemaShapeError(f"Unexpected string format {string_format!r} of '{where}'")

    if string_format in ("date", "date-time"):
        _reject_unexpected(f"{string_format} schema", keys, {"type", "format"}, where)
        return StringShape(min_length=None, max_length=None, format=string_format)

    _reject_unexpected("string schema", keys, {"type", "format", "minLength", "maxLength"}, where)
    min_length = _length(schema, "minLength", where)
    max_length = _length(schema, "maxLength", where)
    if max_length == 0:
        raise UnsupportedSchemaShapeError(f"Unexpected maxLength of 0 in '{where}'")
    if min_length == 0:
        min_length = None
    if min_length is not None and max_length is not None and min_length > max_length:
        raise UnsupportedSchemaShapeError(
            f"Unexpected minLength {min_length} greater than maxLength {max_length} in '{where}'"
        )
    return StringShape(min_length=min_length, max_length=max_length, format=string_format)


def _length(schema: SchemaNode, key: str, where: str) -> Optional[int]:
    value = schema.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise UnsupportedSchemaShapeError(
            f"Expected '{key}' of '{where}' to be a non-negative integer, got {value!r}"
        )
    return value


def _classify_map(schema: SchemaNode, keys: set[str], where: str) -> MapShape:
    _reject_unexpected("map schema", keys, {"type", "additionalProperties"}, where)
    values = schema.get("additionalProperties")
    if isinstance(values, bool):
        raise UnsupportedSchemaShapeError(
            f"Expected 'additionalProperties' inside '{where}' to be a schema or reference, "
            f"but found: {str(values).lower()}"
        )
    if not isinstance(values, Mapping):
        raise UnsupportedSchemaShapeError(f"Expected 'additionalProperties' inside '{where}'")
    return MapShape(values=values)


def _classify_object(schema: SchemaNode, keys: set[str], where: str) -> ObjectShape:
    _reject_unexpected("object schema", keys, {"type", "properties", "required"}, where)
    properties = schema["properties"]
    if not isinstance(properties, Mapping) or not all(
        isinstance(name, str) and isinstance(value, Mapping) for name, value in properties.items()
    ):
        raise UnsupportedSchemaShapeError(
            f"Expected 'properties' of '{where}' to map property names to schemas"
        )
    required = schema.get("required", [])
    if not isinstance(required, list) or not all(isinstance(name, str) for name in required):
        raise UnsupportedSchemaShapeError(
            f"Expected 'required' of '{where}' to be a list of property names"
        )
    unknown = sorted(set(required) - set(properties))
    if unknown:
        raise UnsupportedSchemaShapeError(
            f"Required properties of '{where}' are not defined: {', '.join(unknown)}"
        )
    return ObjectShape(properties=properties, required=frozenset(required))


def _reject_unexpected(label: str, keys: set[str], allowed: set[str], where: str) -> None:
    unexpected = sorted(keys - allowed)
    if unexpected:
        raise UnsupportedSchemaShapeError(
            f"Unexpected properties of {label} '{where}': {', '.join(unexpected)}"
        )


class SchemaKind(Enum):
    """Kind of a named component schema."""

    ENUM = "enum"
    OBJECT = "object"


@dataclass(frozen=True)
class SchemaRegistry:
    """Read-only mapping of component type names to their kind."""

    kinds: Mapping[str, SchemaKind]

    def kind_of(self, name: Identifier) -> SchemaKind:
        """Return the kind of the component named ``name``."""
        kind = self.kinds.get(name.upper_camel)
        if kind is None:
            raise MalformedReferenceError(
                f"Reference to undefined schema '{name.upper_camel}' in components.schemas"
            )
        return kind

    def is_enum(self, name: Identifier) -> bool:
        """Return whether ``name`` is a string enum component."""
        return self.kind_of(name) is SchemaKind.ENUM


def build_registry(schemas: Mapping[str, Any]) -> SchemaRegistry:
    """Classify every named component schema.

    Args:
        schemas (Mapping[str, Any]): ``components.schemas`` of the document.

    Returns:
        SchemaRegistry: Kinds keyed by upper camel type name.
    """
    kinds: dict[str, SchemaKind] = {}
    raw_names: dict[str, str] = {}
    for raw_name, schema in schemas.items():
        ident = Identifier.from_camel(raw_name)
        if ident.upper_camel in raw_names:
            raise InvalidIdentifierError(
                f"Schemas {raw_names[ident.upper_camel]!r} and {raw_name!r} "
                f"both map to type name {ident.upper_camel!r}"
            )
        raw_names[ident.upper_camel] = raw_name

        shape = classify_schema(schema, (ident.upper_camel,))
        if isinstance(shape, EnumShape):
            kinds[ident.upper_camel] = SchemaKind.ENUM
        elif isinstance(shape, ObjectShape):
            kinds[ident.upper_camel] = SchemaKind.OBJECT
        else:
            raise UnsupportedSchemaShapeError(
                f"Schema '{ident.upper_camel}' must be a string enum or an object with properties"
            )
    return SchemaRegistry(kinds=MappingProxyType(kinds))
