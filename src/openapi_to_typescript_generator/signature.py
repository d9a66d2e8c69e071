"""Validation of one operation into the typed signature both emitters render."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Optional

from .errors import OperationShapeViolationError, UnsupportedParameterTypeError
from .identifier import Identifier
from .imports import ImportSet
from .operations import Operation, TagOperations
from .runtime_type import EMPTY_CONTEXT, RuntimeType, RuntimeTypeResolver
from .schema_shapes import ArrayShape, classify_schema
from .text import is_identifier, split_lines

JSON_MEDIA_TYPE = "application/json"

# Names the generated classes already use for their own members.
RESERVED_METHOD_NAMES: frozenset[str] = frozenset(
    {"constructor", "fetch", "handleResponse", "printResponse", "registerEndpoints"}
)
RESERVED_ARGUMENT_NAMES: frozenset[str] = frozenset({"body", "overrideConfig"})


@dataclass(frozen=True)
class ParameterSpec:
    """One path or query parameter."""

    name: str
    location: Literal["path", "query"]
    required: bool
    runtime_type: RuntimeType
    description: Optional[str]
    context: tuple[str, ...]


@dataclass(frozen=True)
class BodySpec:
    """The JSON request body."""

    runtime_type: RuntimeType
    description: Optional[str]
    context: tuple[str, ...]


@dataclass(frozen=True)
class ResponseSpec:
    """The JSON body of the ``200`` response."""

    runtime_type: RuntimeType
    description: Optional[str]
    context: tuple[str, ...]


@dataclass(frozen=True)
class OperationSignature:
    """An operation with its method name, body, parameters and response resolved."""

    operation: Operation
    method_name: str
    body: Optional[BodySpec]
    parameters: tuple[ParameterSpec, ...]
    response: Optional[ResponseSpec]

    @property
    def return_type(self) -> str:
        """TypeScript type of the awaited result."""
        return self.response.runtime_type.type_name if self.response else "void"

    def arguments(self) -> list[str]:
        """``name: type`` for the request body followed by every parameter."""
        arguments: list[str] = []
        if self.body is not None:
            arguments.append(f"body: {self.body.runtime_type.type_name}")
        arguments.extend(
            f"{parameter.name}: {parameter.runtime_type.type_name}" for parameter in self.parameters
        )
        return arguments

    def argument_names(self) -> list[str]:
        """Argument names in the order of :meth:`arguments`."""
        names = ["body"] if self.body is not None else []
        names.extend(parameter.name for parameter in self.parameters)
        return names

    def doc_lines(self, *extra_params: tuple[str, str]) -> list[Optional[str]]:
        """Summary, description and ``@param``/``@return`` lines for a doc comment."""
        tags: list[str] = []

        def add(prefix: str, text: str) -> None:
            tags.append(prefix)
            tags.extend(f"  {line}" for line in split_lines(text))

        if self.body is not None:
            add("@param body", self.body.description or "Request body.")
        for parameter in self.parameters:
            add(
                f"@param {parameter.name}",
                parameter.description or f"{parameter.location.capitalize()} param.",
            )
        for name, text in extra_params:
            add(f"@param {name}", text)
        if self.response is not None:
            add("@return", self.response.description or "Response body.")

        return [
            self.operation.text("summary"),
            "",
            *split_lines(self.operation.text("description")),
            "",
            *tags,
        ]


def build_signatures(
    tag_operations: TagOperations,
    resolver: RuntimeTypeResolver,
    imports: ImportSet,
) -> list[OperationSignature]:
    """Resolve every operation of one tag.

    Args:
        tag_operations (TagOperations): Operations grouped under the tag.
        resolver (RuntimeTypeResolver): Resolver for parameter, body and response schemas.
        imports (ImportSet): Import set of the file being emitted.

    Returns:
        list[OperationSignature]: Signatures in document order.
    """
    tag = Identifier.from_words(tag_operations.name)
    signatures: list[OperationSignature] = []
    seen: dict[str, str] = {}
    for operation in tag_operations.operations:
        method_name = operation_method_name(operation, tag)
        if method_name in seen:
            raise OperationShapeViolationError(
                f"Duplicate operation ID {method_name!r} in tag {tag_operations.name!r}: "
                f"{seen[method_name]} and {operation.label}"
            )
        seen[method_name] = operation.label
        signatures.append(_build_signature(operation, method_name, resolver, imports))
    return signatures


def operation_method_name(operation: Operation, tag: Identifier) -> str:
    """Return the operation ID with an optional tag prefix stripped."""
    operation_id = operation.text("operationId")
    if operation_id is None:
        raise OperationShapeViolationError(f"Expected operation ID for {operation.label}")

    method_name = operation_id
    for prefix in (tag.lower_camel, tag.upper_camel):
        rest = operation_id[len(prefix) :]
        if not operation_id.startswith(prefix) or not rest:
            continue
        if rest[0] in "._":
            method_name = rest[1:]
        elif rest[0].isupper():
            method_name = rest[0].lower() + rest[1:]
        break

    if not is_identifier(method_name):
        raise OperationShapeViolationError(
            f"Operation ID {operation_id!r} of {operation.label} is not a valid identifier"
        )
    if method_name in RESERVED_METHOD_NAMES:
        raise OperationShapeViolationError(
            f"Operation ID {operation_id!r} of {operation.label} clashes with a generated member"
        )
    return method_name


def _build_signature(
    operation: Operation,
    method_name: str,
    resolver: RuntimeTypeResolver,
    imports: ImportSet,
) -> OperationSignature:
    body = _request_body(operation, method_name, resolver, imports)
    parameters = _parameters(operation, method_name, resolver, imports)
    response = _response(operation, method_name, resolver, imports)
    return OperationSignature(
        operation=operation,
        method_name=method_name,
        body=body,
        parameters=parameters,
        response=response,
    )


def _request_body(
    operation: Operation,
    method_name: str,
    resolver: RuntimeTypeResolver,
    imports: ImportSet,
) -> Optional[BodySpec]:
    request_body = operation.operation.get("requestBody")
    if request_body is None:
        return None
    if not isinstance(request_body, Mapping) or "$ref" in request_body:
        raise OperationShapeViolationError(
            f"Unexpected reference in request body of {method_name}"
        )
    if request_body.get("required") is not True:
        raise OperationShapeViolationError(f"Body is not required for operation {method_name}")

    context = (method_name, "requestBody")
    schema = _json_schema(request_body.get("content"), f"request body of {method_name}")
    runtime_type = resolver.resolve(schema, imports, required=True, context=context)
    return BodySpec(
        runtime_type=runtime_type,
        description=_text(request_body.get("description")),
        context=context,
    )


def _parameters(
    operation: Operation,
    method_name: str,
    resolver: RuntimeTypeResolver,
    imports: ImportSet,
) -> tuple[ParameterSpec, ...]:
    parameters: list[ParameterSpec] = []
    path_names: list[str] = []
    for parameter in operation.parameters:
        name = parameter.get("name")
        location = parameter.get("in")
        if not isinstance(name, str) or not is_identifier(name) or name in RESERVED_ARGUMENT_NAMES:
            raise OperationShapeViolationError(
                f"Invalid parameter name {name!r} of operation {method_name}"
            )
        if location not in ("path", "query"):
            raise OperationShapeViolationError(
                f"Params should only be path or query: {name} of {method_name}"
            )
        required = parameter.get("required", False) is True
        if location == "path":
            if not required:
                raise OperationShapeViolationError(
                    f"Path param {name} of {method_name} must be required"
                )
            path_names.append(name)

        schema = parameter.get("schema")
        if not isinstance(schema, Mapping):
            raise OperationShapeViolationError(
                f"Expected schema inside of parameter {name} of {method_name}"
            )
        context = (method_name, location, name)
        if location == "path" and isinstance(classify_schema(schema, context), ArrayShape):
            raise UnsupportedParameterTypeError(
                f"Unexpected array path parameter '{'.'.join(context)}'"
            )
        # Parameters arrive as strings in both modes, so they must have a string decoder.
        resolver.resolve(
            schema, ImportSet(imports.folder), required=required, context=context
        ).from_json_param(name, EMPTY_CONTEXT)
        runtime_type = resolver.resolve(schema, imports, required=required, context=context)
        parameters.append(
            ParameterSpec(
                name=name,
                location=location,
                required=required,
                runtime_type=runtime_type,
                description=_text(parameter.get("description")),
                context=context,
            )
        )

    if len(set(path_names)) != len(path_names) or len(
        {parameter.name for parameter in parameters}
    ) != len(parameters):
        raise OperationShapeViolationError(f"Duplicate parameter names in {method_name}")
    if sorted(path_names) != sorted(operation.url.param_names):
        raise OperationShapeViolationError(
            f"Path params of {method_name} {sorted(path_names)} do not match "
            f"the template {operation.path!r}"
        )
    return tuple(parameters)


def _response(
    operation: Operation,
    method_name: str,
    resolver: RuntimeTypeResolver,
    imports: ImportSet,
) -> Optional[ResponseSpec]:
    responses = operation.operation.get("responses")
    if not isinstance(responses, Mapping):
        raise OperationShapeViolationError(f"Expected responses of operation {method_name}")
    by_status = {str(status): response for status, response in responses.items()}
    response = by_status.pop("200", None)
    if response is None:
        raise OperationShapeViolationError(f"Expected 200 response of operation {method_name}")
    if by_status:
        raise OperationShapeViolationError(
            f"Unexpected responses of operation {method_name}: {', '.join(sorted(by_status))}"
        )
    if not isinstance(response, Mapping) or "$ref" in response:
        raise OperationShapeViolationError(f"Unexpected reference in response of {method_name}")

    content = response.get("content")
    if content is None:
        return None
    context = (method_name, "200", "responseBody")
    schema = _json_schema(content, f"200 response of {method_name}")
    runtime_type = resolver.resolve(schema, imports, required=True, context=context)
    return ResponseSpec(
        runtime_type=runtime_type,
        description=_text(response.get("description")),
        context=context,
    )


def _json_schema(content: Any, where: str) -> Mapping[str, Any]:
    media = content.get(JSON_MEDIA_TYPE) if isinstance(content, Mapping) else None
    schema = media.get("schema") if isinstance(media, Mapping) else None
    if not isinstance(schema, Mapping):
        raise OperationShapeViolationError(f"Expected {JSON_MEDIA_TYPE} schema in {where}")
    return schema


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
