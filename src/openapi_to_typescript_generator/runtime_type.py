"""Translation of schema nodes into TypeScript types, validators and printers.

A :class:`RuntimeType` describes one schema node in generated code: the static
type name plus builders for the expressions that decode a JSON value into
that type (``from_json``), decode a URL path or query string
(``from_json_param``) and encode the value back into JSON (``to_json``).
Builders register the runtime helpers they call with the file's
:class:`~.imports.ImportSet` when invoked, so a file only imports the helpers
its generated code actually uses.

Decoders are always called with an error context. At runtime the context is a
``string[]`` that the support library joins with ``.`` in its messages;
``validateArray`` appends the element index and ``validateMap`` the key.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Optional, TypeAlias

from .errors import (
    UnsupportedParameterTypeError,
    UnsupportedSchemaShapeError,
    format_context,
)
from .identifier import Identifier
from .imports import ImportSet
from .json_types import SchemaNode
from .schema_shapes import (
    ArrayShape,
    BooleanShape,
    EnumShape,
    MapShape,
    NumberShape,
    ObjectShape,
    OneOfShape,
    ReferenceShape,
    SchemaRegistry,
    StringShape,
    classify_schema,
)

Decode: TypeAlias = Callable[[str, str], str]
Encode: TypeAlias = Callable[[str], str]

# Parameter names of the arrow functions passed to collection helpers.
ITEM_VALUE = "x"
ITEM_CONTEXT = "context"
EMPTY_CONTEXT = "[]"


@dataclass(frozen=True)
class RuntimeType:
    """Static type and conversion expressions for one schema node.

    Attributes:
        type_name (str): TypeScript type, including ``| undefined`` when optional.
        decode (Decode): Builds ``value, context -> expression`` decoding JSON.
        decode_param (Decode): Builds the decoder for string URL parameters.
        encode (Optional[Encode]): Builds the JSON encoder; ``None`` when the
            value already is its own JSON form.
    """

    type_name: str
    decode: Decode
    decode_param: Decode
    encode: Optional[Encode] = None

    def from_json(self, value: str, context: str) -> str:
        """Return an expression decoding ``value`` as JSON."""
        return self.decode(value, context)

    def from_json_param(self, value: str, context: str) -> str:
        """Return an expression decoding ``value`` from a path or query string."""
        return self.decode_param(value, context)

    def to_json(self, value: str) -> str:
        """Return an expression encoding ``value`` to JSON."""
        if self.encode is None:
            return value
        return self.encode(value)

    @property
    def has_printer(self) -> bool:
        """Whether encoding needs a call rather than the value itself."""
        return self.encode is not None


def context_literal(segments: Sequence[str], *, parent: Optional[str] = None) -> str:
    """Render a runtime context array, optionally extending ``parent``.

    >>> context_literal(["Widget", "owner"], parent="context")
    '[...context, "Widget", "owner"]'
    """
    parts = [json.dumps(segment) for segment in segments]
    if parent is not None:
        parts.insert(0, f"...{parent}")
    return f"[{', '.join(parts)}]"


def _mapper(decode: Decode) -> str:
    return f"({ITEM_VALUE}, {ITEM_CONTEXT}) => {decode(ITEM_VALUE, ITEM_CONTEXT)}"


def _printer(encode: Encode) -> str:
    return f"({ITEM_VALUE}) => {encode(ITEM_VALUE)}"


class RuntimeTypeResolver:
    """Resolve schema nodes against the registry of named component schemas."""

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry = registry

    def resolve(
        self,
        schema: SchemaNode,
        imports: ImportSet,
        *,
        required: bool,
        context: Sequence[str],
    ) -> RuntimeType:
        """Resolve one schema node.

        Args:
            schema (SchemaNode): Schema or reference to resolve.
            imports (ImportSet): Import set of the file the code is emitted into.
            required (bool): Whether the value must be present.
            context (Sequence[str]): Location of the node, for error messages.

        Returns:
            RuntimeType: Descriptor of the node, optional when not required.
        """
        runtime_type = self._resolve(schema, imports, tuple(context))
        if required:
            return runtime_type
        return _optional(runtime_type, imports)

    def _resolve(
        self,
        schema: SchemaNode,
        imports: ImportSet,
        context: tuple[str, ...],
    ) -> RuntimeType:
        shape = classify_schema(schema, context)
        match shape:
            case ReferenceShape(name=name):
                return self._reference(name, imports, context)
            case OneOfShape(options=options):
                return self._one_of(options, imports, context)
            case BooleanShape():
                return _primitive("boolean", "validateBoolean", "validateBooleanString", imports)
            case NumberShape(integer=True):
                return _primitive("number", "validateInteger", "validateIntegerString", imports)
            case NumberShape(integer=False):
                return _primitive("number", "validateNumber", "validateNumberString", imports)
            case StringShape(format="date"):
                return _date("validateDate", "printDate", imports)
            case StringShape(format="date-time"):
                return _date("validateDateTime", "printDateTime", imports)
            case StringShape():
                return _string(shape, imports)
            case MapShape(values=values):
                return self._map(values, imports, context)
            case ArrayShape(items=items):
                return self._array(items, imports, context)
            case EnumShape():
                raise UnsupportedSchemaShapeError(
                    f"Unexpected inline enum in '{format_context(context)}'; "
                    "declare it as a named schema and reference it"
                )
            case ObjectShape():
                raise UnsupportedSchemaShapeError(
                    f"Unexpected inline object in '{format_context(context)}'; "
                    "declare it as a named schema and reference it"
                )
            case _:
                raise UnsupportedSchemaShapeError(
                    f"Unsupported schema shape at '{format_context(context)}'"
                )

    def _reference(
        self,
        name: Identifier,
        imports: ImportSet,
        context: tuple[str, ...],
    ) -> RuntimeType:
        type_name = name.upper_camel
        is_enum = self._registry.is_enum(name)
        imports.add_local("model", name.kebab, type_name)
        validate_name = f"validate{type_name}"
        print_name = f"print{type_name}"

        def decode(value: str, runtime_context: str) -> str:
            imports.add_local("model", name.kebab, validate_name)
            return f"{validate_name}({value}, {runtime_context})"

        if is_enum:
            # Enum values are their own JSON form; printing re-checks the value.
            def encode_enum(value: str) -> str:
                imports.add_local("model", name.kebab, validate_name)
                return f"{validate_name}({value})"

            return RuntimeType(
                type_name=type_name,
                decode=decode,
                decode_param=decode,
                encode=encode_enum,
            )

        def decode_param(value: str, runtime_context: str) -> str:
            raise UnsupportedParameterTypeError(
                f"Unexpected reference parameter '{format_context(context)}': "
                f"{type_name} cannot be read from a URL string"
            )

        def encode(value: str) -> str:
            imports.add_local("model", name.kebab, print_name)
            return f"{print_name}({value})"

        return RuntimeType(
            type_name=type_name,
            decode=decode,
            decode_param=decode_param,
            encode=encode,
        )

    def _one_of(
        self,
        options: tuple[SchemaNode, ...],
        imports: ImportSet,
        context: tuple[str, ...],
    ) -> RuntimeType:
        branches = [
            self._resolve(option, imports, (*context, f"oneOf[{index}]"))
            for index, option in enumerate(options)
        ]
        type_name = " | ".join(branch.type_name for branch in branches)

        def decode(value: str, runtime_context: str) -> str:
            imports.add_validate("validateFirst")
            mappers = ", ".join(_mapper(branch.decode) for branch in branches)
            return f"validateFirst<{type_name}>({value}, [{mappers}], {runtime_context})"

        def decode_param(value: str, runtime_context: str) -> str:
            imports.add_validate("validateFirst")
            mappers = ", ".join(_mapper(branch.decode_param) for branch in branches)
            return f"validateFirst<{type_name}>({value}, [{mappers}], {runtime_context})"

        def encode(value: str) -> str:
            imports.add_validate("printFirst")
            printers = ", ".join(_printer(_checked_encoder(branch)) for branch in branches)
            return f"printFirst({value}, [{printers}])"

        return RuntimeType(
            type_name=type_name,
            decode=decode,
            decode_param=decode_param,
            encode=encode if any(branch.has_printer for branch in branches) else None,
        )

    def _array(
        self,
        items: SchemaNode,
        imports: ImportSet,
        context: tuple[str, ...],
    ) -> RuntimeType:
        item = self._resolve(items, imports, (*context, "items"))

        def decode(value: str, runtime_context: str) -> str:
            imports.add_validate("validateArray")
            return f"validateArray({value}, {_mapper(item.decode)}, {runtime_context})"

        def decode_param(value: str, runtime_context: str) -> str:
            imports.add_validate("validateParamArray")
            return f"validateParamArray({value}, {_mapper(item.decode_param)}, {runtime_context})"

        def encode(value: str) -> str:
            return f"{value}.map({_printer(_required_encoder(item))})"

        return RuntimeType(
            type_name=f"ReadonlyArray<{item.type_name}>",
            decode=decode,
            decode_param=decode_param,
            encode=encode if item.has_printer else None,
        )

    def _map(
        self,
        values: SchemaNode,
        imports: ImportSet,
        context: tuple[str, ...],
    ) -> RuntimeType:
        value_type = self._resolve(values, imports, (*context, "additionalProperties"))

        def decode(value: str, runtime_context: str) -> str:
            imports.add_validate("validateMap")
            return f"validateMap({value}, {_mapper(value_type.decode)}, {runtime_context})"

        def decode_param(value: str, runtime_context: str) -> str:
            raise UnsupportedParameterTypeError(
                f"Unexpected map parameter '{format_context(context)}'"
            )

        def encode(value: str) -> str:
            imports.add_validate("printMap")
            return f"printMap({value}, {_printer(_required_encoder(value_type))})"

        return RuntimeType(
            type_name=f"Readonly<Record<string, {value_type.type_name}>>",
            decode=decode,
            decode_param=decode_param,
            encode=encode if value_type.has_printer else None,
        )


def _required_encoder(runtime_type: RuntimeType) -> Encode:
    if runtime_type.encode is None:
        raise ValueError(f"Type {runtime_type.type_name} has no printer")
    return runtime_type.encode


def _checked_encoder(runtime_type: RuntimeType) -> Encode:
    """Encoder that fails for values of another type, for use in unions.

    Printers accept anything shaped like their type, so the printed JSON is
    validated again before it is accepted.
    """
    encode = runtime_type.encode
    if encode is None:
        return lambda value: runtime_type.decode(value, EMPTY_CONTEXT)
    return lambda value: (
        f"{{ const json = {encode(value)}; "
        f"{runtime_type.decode('json', EMPTY_CONTEXT)}; return json; }}"
    )


def _primitive(
    type_name: str,
    validator: str,
    param_validator: str,
    imports: ImportSet,
) -> RuntimeType:
    def decode(value: str, runtime_context: str) -> str:
        imports.add_validate(validator)
        return f"{validator}({value}, {runtime_context})"

    def decode_param(value: str, runtime_context: str) -> str:
        imports.add_validate(param_validator)
        return f"{param_validator}({value}, {runtime_context})"

    return RuntimeType(type_name=type_name, decode=decode, decode_param=decode_param)


def _string(shape: StringShape, imports: ImportSet) -> RuntimeType:
    options: list[str] = []
    if shape.min_length is not None:
        options.append(f"minLength: {shape.min_length}")
    if shape.max_length is not None:
        options.append(f"maxLength: {shape.max_length}")
    if shape.format == "email":
        options.append("email: true")
    options_text = f", {{ {', '.join(options)} }}" if options else ""

    def decode(value: str, runtime_context: str) -> str:
        imports.add_validate("validateString")
        return f"validateString({value}, {runtime_context}{options_text})"

    return RuntimeType(type_name="string", decode=decode, decode_param=decode)


def _date(validator: str, printer: str, imports: ImportSet) -> RuntimeType:
    def decode(value: str, runtime_context: str) -> str:
        imports.add_validate(validator)
        return f"{validator}({value}, {runtime_context})"

    def encode(value: str) -> str:
        imports.add_validate(printer)
        return f"{printer}({value})"

    return RuntimeType(type_name="Date", decode=decode, decode_param=decode, encode=encode)


def _optional(runtime_type: RuntimeType, imports: ImportSet) -> RuntimeType:
    def guard(value: str, expression: str) -> str:
        imports.add_validate("isUndefined")
        return f"isUndefined({value}) ? undefined : {expression}"

    def decode(value: str, runtime_context: str) -> str:
        return guard(value, runtime_type.decode(value, runtime_context))

    def decode_param(value: str, runtime_context: str) -> str:
        return guard(value, runtime_type.decode_param(value, runtime_context))

    def encode(value: str) -> str:
        return guard(value, _required_encoder(runtime_type)(value))

    return RuntimeType(
        type_name=f"{runtime_type.type_name} | undefined",
        decode=decode,
        decode_param=decode_param,
        encode=encode if runtime_type.has_printer else None,
    )
