"""Extraction of operations from ``paths``, grouped by tag."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Optional

from .errors import OperationShapeViolationError
from .json_types import JSONObject

HTTP_METHODS: tuple[str, ...] = (
    "get",
    "put",
    "post",
    "delete",
    "options",
    "head",
    "patch",
    "trace",
)

OPERATION_KEYS = frozenset(
    {
        "summary",
        "description",
        "operationId",
        "parameters",
        "requestBody",
        "responses",
        "security",
        "tags",
    }
)

TAG_KEYS = frozenset({"name", "description"})

_PARAM_RE = re.compile(r"\{([^{}]*)\}")
_PARAM_NAME_RE = re.compile(r"^\w+$")


@dataclass(frozen=True)
class UrlPart:
    """Literal text or a named parameter of a URL template."""

    kind: Literal["literal", "param"]
    value: str


@dataclass(frozen=True)
class UrlTemplate:
    """A parsed path template such as ``/widgets/{widgetId}``.

    A template without parameters has a single literal part.
    """

    original: str
    parts: tuple[UrlPart, ...]

    @property
    def has_params(self) -> bool:
        """Whether the template contains any parameter."""
        return any(part.kind == "param" for part in self.parts)

    @property
    def param_names(self) -> tuple[str, ...]:
        """Parameter names in template order."""
        return tuple(part.value for part in self.parts if part.kind == "param")

    def route_pattern(self) -> str:
        """Render the template with ``:name`` placeholders for route matching."""
        return "".join(
            f":{part.value}" if part.kind == "param" else part.value for part in self.parts
        )


def parse_url(template: str) -> UrlTemplate:
    """Split a path template into literal and parameter parts.

    Args:
        template (str): Path key from the ``paths`` object.

    Returns:
        UrlTemplate: Parsed template.
    """
    parts: list[UrlPart] = []
    position = 0
    for match in _PARAM_RE.finditer(template):
        _append_literal(parts, template, template[position : match.start()])
        name = match.group(1)
        if not _PARAM_NAME_RE.match(name):
            raise OperationShapeViolationError(
                f"Invalid parameter name {name!r} in path template {template!r}"
            )
        parts.append(UrlPart(kind="param", value=name))
        position = match.end()
    _append_literal(parts, template, template[position:])

    if not parts:
        parts.append(UrlPart(kind="literal", value=template))
    return UrlTemplate(original=template, parts=tuple(parts))


def _append_literal(parts: list[UrlPart], template: str, literal: str) -> None:
    if "{" in literal or "}" in literal:
        raise OperationShapeViolationError(f"Unbalanced braces in path template {template!r}")
    if literal:
        parts.append(UrlPart(kind="literal", value=literal))


@dataclass(frozen=True)
class Operation:
    """An OpenAPI operation extended with its method, path and parsed URL."""

    method: str
    path: str
    url: UrlTemplate
    tag: str
    operation: JSONObject
    parameters: tuple[JSONObject, ...]

    @property
    def label(self) -> str:
        """``METHOD /path`` for error messages."""
        return f"{self.method} {self.path}"

    def text(self, key: str) -> Optional[str]:
        """Return a non-empty string field of the operation."""
        value = self.operation.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


@dataclass(frozen=True)
class TagOperations:
    """Operations of one tag, in document order."""

    name: str
    description: Optional[str]
    operations: tuple[Operation, ...]


def extract_operations(
    paths: Mapping[str, Any],
    tags: list[Any],
) -> dict[str, TagOperations]:
    """Group every operation under ``paths`` by its single tag.

    Args:
        paths (Mapping[str, Any]): The document's ``paths`` object.
        tags (list[Any]): The document's top-level ``tags`` list.

    Returns:
        dict[str, TagOperations]: Operations keyed by tag name, declared tags first.
    """
    descriptions = _declared_tags(tags)
    grouped: dict[str, list[Operation]] = {name: [] for name in descriptions}

    for path, path_item in paths.items():
        if not isinstance(path_item, Mapping):
            raise OperationShapeViolationError(f"Expected path item of {path!r} to be an object")
        url = parse_url(path)
        shared_parameters = _parameter_list(path_item.get("parameters"), path)
        for key, operation in path_item.items():
            if key not in HTTP_METHODS:
                continue
            method = key.upper()
            if not isinstance(operation, Mapping):
                raise OperationShapeViolationError(
                    f"Expected operation {method} {path} to be an object"
                )
            _reject_unknown_keys(operation, OPERATION_KEYS, f"operation {method} {path}")
            tag = _single_tag(operation, method, path)
            if tag not in grouped:
                raise OperationShapeViolationError(
                    f"Tag {tag!r} of {method} {path} is not declared in the top-level tags"
                )
            parameters = _merge_parameters(
                shared_parameters,
                _parameter_list(operation.get("parameters"), f"{method} {path}"),
            )
            grouped[tag].append(
                Operation(
                    method=method,
                    path=path,
                    url=url,
                    tag=tag,
                    operation=operation,
                    parameters=parameters,
                )
            )

    return {
        name: TagOperations(
            name=name,
            description=descriptions[name],
            operations=tuple(operations),
        )
        for name, operations in grouped.items()
    }


def _declared_tags(tags: list[Any]) -> dict[str, Optional[str]]:
    descriptions: dict[str, Optional[str]] = {}
    for tag in tags:
        name = tag.get("name") if isinstance(tag, Mapping) else None
        if not isinstance(name, str) or not name.strip():
            raise OperationShapeViolationError(f"Expected every tag to have a name, got {tag!r}")
        _reject_unknown_keys(tag, TAG_KEYS, f"tag {name!r}")
        if name in descriptions:
            raise OperationShapeViolationError(f"Tag {name!r} is declared more than once")
        description = tag.get("description")
        descriptions[name] = description.strip() if isinstance(description, str) else None
    return descriptions


def _reject_unknown_keys(node: Mapping[str, Any], allowed: frozenset[str], where: str) -> None:
    unexpected = sorted(str(key) for key in node if key not in allowed)
    if unexpected:
        raise OperationShapeViolationError(
            f"Unexpected properties of {where}: {', '.join(unexpected)}"
        )


def _single_tag(operation: JSONObject, method: str, path: str) -> str:
    tags = operation.get("tags")
    if not isinstance(tags, list) or len(tags) != 1 or not isinstance(tags[0], str):
        raise OperationShapeViolationError(
            f"Expected 1 tag for {method} {path}, but found: {tags!r}"
        )
    return tags[0]


def _parameter_list(raw: Any, where: str) -> list[JSONObject]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise OperationShapeViolationError(f"Expected parameters of {where} to be a list")
    parameters: list[JSONObject] = []
    for parameter in raw:
        if not isinstance(parameter, Mapping):
            raise OperationShapeViolationError(f"Expected parameter of {where} to be an object")
        if "$ref" in parameter:
            raise OperationShapeViolationError(f"Unexpected reference in parameter of {where}")
        parameters.append(parameter)
    return parameters


def _merge_parameters(
    shared: list[JSONObject],
    own: list[JSONObject],
) -> tuple[JSONObject, ...]:
    def key(parameter: JSONObject) -> tuple[Any, Any]:
        return parameter.get("name"), parameter.get("in")

    overridden = {key(parameter) for parameter in own}
    merged = [parameter for parameter in shared if key(parameter) not in overridden]
    merged.extend(own)
    return tuple(merged)
