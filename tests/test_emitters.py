"""Tests for model, api, client and index emission."""

from __future__ import annotations

import re
from typing import Any

import pytest

from openapi_to_typescript_generator.api_emitter import emit_api
from openapi_to_typescript_generator.client_emitter import emit_client
from openapi_to_typescript_generator.errors import (
    OperationShapeViolationError,
    UnsupportedParameterTypeError,
)
from openapi_to_typescript_generator.identifier import Identifier
from openapi_to_typescript_generator.index_emitter import emit_index
from openapi_to_typescript_generator.model_emitter import emit_model
from openapi_to_typescript_generator.operations import TagOperations, extract_operations
from openapi_to_typescript_generator.runtime_type import RuntimeTypeResolver
from openapi_to_typescript_generator.schema_shapes import build_registry
from openapi_to_typescript_generator.text import FILE_HEADER

_SCHEMAS: dict[str, Any] = {
    "Status": {"type": "string", "enum": ["A", "B"], "description": "Widget status."},
    "User": {"type": "object", "properties": {"name": {"type": "string"}}},
    "Widget": {
        "type": "object",
        "properties": {
            "id": {"type": "string", "description": "Widget id."},
            "owner": {"$ref": "#/components/schemas/User"},
        },
        "required": ["id"],
    },
    "Counter": {
        "type": "object",
        "properties": {
            "counts": {"type": "object", "additionalProperties": {"type": "integer"}},
            "content-type": {"type": "string"},
        },
        "required": ["counts"],
    },
    "Empty": {"type": "object", "properties": {}},
}

_WIDGET_RESPONSE = {
    "200": {
        "description": "The widget.",
        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Widget"}}},
    }
}


@pytest.fixture
def resolver() -> RuntimeTypeResolver:
    return RuntimeTypeResolver(build_registry(_SCHEMAS))


def _widgets(paths: dict[str, Any]) -> TagOperations:
    return extract_operations(paths, [{"name": "widgets", "description": "Widget ops."}])["widgets"]


def _get_widget(**overrides: Any) -> dict[str, Any]:
    operation: dict[str, Any] = {
        "tags": ["widgets"],
        "operationId": "widgetsGetWidget",
        "summary": "Fetch one widget.",
        "parameters": [
            {"in": "path", "name": "widgetId", "required": True, "schema": {"type": "string"}},
            {"in": "query", "name": "status", "schema": {"$ref": "#/components/schemas/Status"}},
        ],
        "responses": _WIDGET_RESPONSE,
    }
    operation.update(overrides)
    return operation


def _create_widget(**overrides: Any) -> dict[str, Any]:
    operation: dict[str, Any] = {
        "tags": ["widgets"],
        "operationId": "createWidget",
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Widget"}}},
        },
        "responses": _WIDGET_RESPONSE,
    }
    operation.update(overrides)
    return operation


def test_enum_model(resolver: RuntimeTypeResolver) -> None:
    """String enums emit a literal union, their values and a one-of validator."""
    generated = emit_model("Status", _SCHEMAS["Status"], resolver)

    assert generated.path == "model/status.ts"
    assert generated.content.startswith(FILE_HEADER)
    assert 'import { validateOneOf } from "../validate";' in generated.content
    assert "/** Widget status. */" in generated.content
    assert 'export type Status = "A" | "B";' in generated.content
    assert 'export const valuesStatus: ReadonlyArray<Status> = ["A", "B"];' in generated.content
    assert "export const printStatus = (value: Status): any => value;" in generated.content
    assert 'validateOneOf(json, valuesStatus, [...context, "Status"]);' in generated.content


def test_object_model_with_optional_reference(resolver: RuntimeTypeResolver) -> None:
    """Optional properties are guarded and nested errors end in the property name."""
    content = emit_model("Widget", _SCHEMAS["Widget"], resolver).content

    assert 'import { User, printUser, validateUser } from "./user";' in content
    assert 'import { isUndefined, validateObject, validateString } from "../validate";' in content
    assert "\t/** Widget id. */\n\treadonly id: string;" in content
    assert "\treadonly owner?: User | undefined;" in content
    assert 'validateObject(value, ["Widget"]);' in content
    assert "owner: isUndefined(value.owner) ? undefined : printUser(value.owner)," in content
    assert "const object = validateObject(json, context);" in content
    assert 'id: validateString(object.id, [...context, "Widget", "id"]),' in content
    assert (
        "owner: isUndefined(object.owner) ? undefined : "
        'validateUser(object.owner, [...context, "Widget", "owner"]),'
    ) in content


def test_object_model_with_map_and_quoted_property(resolver: RuntimeTypeResolver) -> None:
    """Maps decode per entry; non-identifier keys are quoted."""
    content = emit_model("Counter", _SCHEMAS["Counter"], resolver).content

    assert "readonly counts: Readonly<Record<string, number>>;" in content
    assert (
        "counts: validateMap(object.counts, (x, context) => validateInteger(x, context), "
        '[...context, "Counter", "counts"]),'
    ) in content
    assert 'readonly "content-type"?: string | undefined;' in content
    assert '"content-type": isUndefined(object["content-type"])' in content


def test_empty_object_model(resolver: RuntimeTypeResolver) -> None:
    """An object without properties has no members."""
    content = emit_model("Empty", _SCHEMAS["Empty"], resolver).content
    assert "export type Empty = Record<string, never>;" in content


def test_api_controller(resolver: RuntimeTypeResolver) -> None:
    """Controllers declare abstract methods and decode requests before calling them."""
    generated = emit_api(_widgets({"/widgets/{widgetId}": {"get": _get_widget()}}), resolver)
    content = generated.content

    assert generated.path == "api/widgets.ts"
    assert 'import { BaseApi } from "../base-api";' in content
    assert 'import { Widget, printWidget } from "../model/widget";' in content
    assert 'import { Express, Request, Response } from "express";' in content
    assert "export abstract class WidgetsApi extends BaseApi {" in content
    assert "Widget ops." in content
    assert "\t * Fetch one widget." in content
    assert (
        "abstract getWidget(widgetId: string, status: Status | undefined): Promise<Widget>;"
        in content
    )
    assert 'app.get("/widgets/:widgetId", (req: Request, res: Response) =>' in content
    assert (
        'const widgetId = validateString(req.params.widgetId, ["getWidget", "path", "widgetId"]);'
        in content
    )
    assert (
        "const status = isUndefined(req.query.status) ? undefined : "
        'validateStatus(req.query.status, ["getWidget", "query", "status"]);'
    ) in content
    assert "const result = await this.getWidget(widgetId, status);" in content
    assert "return this.printResponse(() => printWidget(result));" in content


def test_api_controller_without_response_body(resolver: RuntimeTypeResolver) -> None:
    """Operations without response content return nothing."""
    operation = _create_widget(responses={"200": {"description": "Stored."}})
    content = emit_api(_widgets({"/widgets": {"put": operation}}), resolver).content

    assert "abstract createWidget(body: Widget): Promise<void>;" in content
    assert 'const body = validateWidget(req.body, ["createWidget", "requestBody"]);' in content
    assert "await this.createWidget(body);" in content


def test_api_controller_returns_plain_json_results(resolver: RuntimeTypeResolver) -> None:
    """Results that are their own JSON form skip the response printer."""
    responses = {
        "200": {
            "description": "Names.",
            "content": {
                "application/json": {"schema": {"type": "array", "items": {"type": "string"}}}
            },
        }
    }
    content = emit_api(_widgets({"/names/{widgetId}": {"get": _get_widget(responses=responses)}}), resolver).content

    assert "const result = await this.getWidget(widgetId, status);" in content
    assert "return result;" in content
    assert "printResponse" not in content


def test_client(resolver: RuntimeTypeResolver) -> None:
    """Clients print bodies and parameters and validate responses."""
    paths = {
        "/widgets": {"post": _create_widget()},
        "/widgets/{widgetId}": {"get": _get_widget()},
    }
    generated = emit_client(_widgets(paths), resolver)
    content = generated.content

    assert generated.path == "client/widgets.ts"
    assert 'import { BaseClient, ClientConfig, UrlBuilder } from "../base-client";' in content
    assert "export class WidgetsClient extends BaseClient {" in content
    assert (
        "createWidget(body: Widget, overrideConfig: Partial<ClientConfig> = {}): Promise<Widget> {"
        in content
    )
    assert '\t\t\t"POST",\n\t\t\t"/widgets",\n\t\t\tprintWidget(body),' in content
    assert (
        '(json: unknown) => validateWidget(json, ["createWidget", "200", "responseBody"]),'
        in content
    )
    assert (
        'new UrlBuilder().addLiteral("/widgets/").addPathParam(widgetId)'
        '.addQuery("status", isUndefined(status) ? undefined : validateStatus(status)).toString()'
    ) in content
    assert "@param overrideConfig" in content


def test_client_and_server_share_url_template(resolver: RuntimeTypeResolver) -> None:
    """The client builds the URL the server route matches."""
    operation = {
        "tags": ["widgets"],
        "operationId": "getPart",
        "parameters": [
            {"in": "path", "name": "widgetId", "required": True, "schema": {"type": "string"}},
            {"in": "path", "name": "partId", "required": True, "schema": {"type": "integer"}},
        ],
        "responses": {"200": {"description": "ok"}},
    }
    paths = {"/widgets/{widgetId}/parts/{partId}": {"get": operation}}

    client = emit_client(_widgets(paths), resolver).content
    server = emit_api(_widgets(paths), resolver).content

    assert (
        'new UrlBuilder().addLiteral("/widgets/").addPathParam(widgetId)'
        '.addLiteral("/parts/").addPathParam(partId).toString()'
    ) in client
    assert 'app.get("/widgets/:widgetId/parts/:partId"' in server
    assert 'validateIntegerString(req.params.partId, ["getPart", "path", "partId"])' in server


@pytest.mark.parametrize(
    ("operation_id", "method_name"),
    [
        ("widgetsList", "list"),
        ("widgets.list", "list"),
        ("Widgets_list", "list"),
        ("listAll", "listAll"),
        ("widgets", "widgets"),
    ],
)
def test_operation_ids_drop_the_tag_prefix(
    resolver: RuntimeTypeResolver, operation_id: str, method_name: str
) -> None:
    """Operation IDs may be prefixed with the tag name."""
    operation = {"tags": ["widgets"], "operationId": operation_id, "responses": {"200": {"description": "ok"}}}
    content = emit_client(_widgets({"/widgets": {"get": operation}}), resolver).content
    assert f"\t{method_name}(overrideConfig: Partial<ClientConfig> = {{}}): Promise<void> {{" in content


@pytest.mark.parametrize(
    ("paths", "message"),
    [
        ({"/w": {"post": _create_widget(requestBody={"content": {}})}}, "Body is not required"),
        (
            {"/w/{widgetId}": {"get": _get_widget(responses={"201": {"description": "created"}})}},
            "Expected 200 response",
        ),
        (
            {"/w/{widgetId}": {"get": _get_widget(responses={**_WIDGET_RESPONSE, "404": {"description": "x"}})}},
            "Unexpected responses of operation getWidget: 404",
        ),
        (
            {"/w": {"get": _create_widget(), "post": _create_widget()}},
            "Duplicate operation ID 'createWidget'",
        ),
        ({"/w": {"get": _create_widget(operationId="get-widget")}}, "not a valid identifier"),
        ({"/w": {"get": _create_widget(operationId="fetch")}}, "clashes with a generated member"),
        ({"/w": {"get": _create_widget(operationId=None)}}, "Expected operation ID"),
        (
            {
                "/w/{id}": {
                    "get": _get_widget(
                        parameters=[{"in": "path", "name": "id", "schema": {"type": "string"}}]
                    )
                }
            },
            "must be required",
        ),
        (
            {
                "/w": {
                    "get": _get_widget(
                        parameters=[{"in": "header", "name": "token", "schema": {"type": "string"}}]
                    )
                }
            },
            "only be path or query",
        ),
        ({"/w/{widgetId}": {"get": _get_widget(parameters=[])}}, "do not match the template"),
    ],
)
def test_operation_shape_violations(
    resolver: RuntimeTypeResolver, paths: dict[str, Any], message: str
) -> None:
    """Unsupported operation layouts fail generation."""
    with pytest.raises(OperationShapeViolationError, match=re.escape(message)):
        emit_api(_widgets(paths), resolver)


@pytest.mark.parametrize(
    ("location", "schema"),
    [
        ("query", {"$ref": "#/components/schemas/Widget"}),
        ("query", {"type": "object", "additionalProperties": {"type": "string"}}),
        ("path", {"type": "array", "items": {"type": "string"}}),
    ],
)
@pytest.mark.parametrize("emit", [emit_api, emit_client], ids=["api", "client"])
def test_unsupported_parameter_types(
    resolver: RuntimeTypeResolver, location: str, schema: dict[str, Any], emit: Any
) -> None:
    """Objects and maps are never parameters; arrays only in the query string."""
    parameter = {"in": location, "name": "value", "required": True, "schema": schema}
    template = "/w/{value}" if location == "path" else "/w"
    operation = _get_widget(parameters=[parameter])
    with pytest.raises(UnsupportedParameterTypeError, match="value"):
        emit(_widgets({template: {"get": operation}}), resolver)


def test_query_arrays_are_supported(resolver: RuntimeTypeResolver) -> None:
    """Repeated query values decode as arrays."""
    parameter = {
        "in": "query",
        "name": "ids",
        "schema": {"type": "array", "items": {"type": "integer"}},
    }
    content = emit_api(_widgets({"/w": {"get": _get_widget(parameters=[parameter])}}), resolver).content
    assert (
        "validateParamArray(req.query.ids, (x, context) => validateIntegerString(x, context), "
        '["getWidget", "query", "ids"])'
    ) in content


def test_register_apis_index() -> None:
    """The api index wires every controller onto one app."""
    generated = emit_index("api", [Identifier.from_words("pet store"), Identifier.from_words("users")])
    assert generated.path == "register-apis.ts"
    assert 'import { PetStoreApi } from "./api/pet-store";' in generated.content
    assert "\treadonly petStore: PetStoreApi;" in generated.content
    assert "\tapis.petStore.registerEndpoints(app);" in generated.content
    assert "\tapis.users.registerEndpoints(app);" in generated.content


def test_clients_index() -> None:
    """The client index builds every client from one config."""
    generated = emit_index("client", [Identifier.from_words("pet store")])
    assert generated.path == "clients.ts"
    assert 'import { ClientConfig } from "./base-client";' in generated.content
    assert 'import { PetStoreClient } from "./client/pet-store";' in generated.content
    assert "\t\tthis.petStore = new PetStoreClient(baseConfig);" in generated.content
