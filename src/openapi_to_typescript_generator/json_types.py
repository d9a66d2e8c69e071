"""Typing aliases for parsed OpenAPI documents."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeAlias

JSONObject: TypeAlias = Mapping[str, Any]

# A schema or a ``$ref`` to one, exactly as parsed from the document.
SchemaNode: TypeAlias = Mapping[str, Any]
