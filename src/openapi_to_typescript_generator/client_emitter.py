"""Emit typed HTTP clients, one ``client/<tag>.ts`` per tag."""

from __future__ import annotations

import json

from .identifier import Identifier
from .imports import ImportSet
from .model_types import GeneratedFile
from .operations import TagOperations
from .runtime_type import RuntimeTypeResolver, context_literal
from .signature import OperationSignature, build_signatures
from .text import doc_comment, render_file, split_lines

CLIENT_FOLDER = "client"
BASE_CLIENT_MODULE = "base-client"
OVERRIDE_CONFIG_DOC = "Client config variable overrides. Defaults to the baseConfig."


def emit_client(tag_operations: TagOperations, resolver: RuntimeTypeResolver) -> GeneratedFile:
    """Render the client class of one tag."""
    tag = Identifier.from_words(tag_operations.name)
    imports = ImportSet(CLIENT_FOLDER)
    imports.add_local(None, BASE_CLIENT_MODULE, "BaseClient")
    imports.add_local(None, BASE_CLIENT_MODULE, "ClientConfig")

    signatures = build_signatures(tag_operations, resolver, imports)

    lines: list[str] = []
    lines.extend(
        doc_comment(f"{tag.display} client.", "", *split_lines(tag_operations.description))
    )
    lines.append(f"export class {tag.upper_camel}Client extends BaseClient {{")
    for index, signature in enumerate(signatures):
        if index:
            lines.append("")
        lines.extend(_method(signature, imports))
    lines.append("}")

    return GeneratedFile(
        path=f"{CLIENT_FOLDER}/{tag.kebab}.ts",
        content=render_file(imports.render(), "\n".join(lines)),
    )


def _method(signature: OperationSignature, imports: ImportSet) -> list[str]:
    arguments = [*signature.arguments(), "overrideConfig: Partial<ClientConfig> = {}"]
    lines = doc_comment(
        *signature.doc_lines(("overrideConfig", OVERRIDE_CONFIG_DOC)),
        indent="\t",
    )
    lines.append(
        f"\t{signature.method_name}({', '.join(arguments)}): Promise<{signature.return_type}> {{"
    )
    lines.append("\t\treturn this.fetch(")
    lines.append("\t\t\toverrideConfig,")
    lines.append(f"\t\t\t{json.dumps(signature.operation.method)},")
    lines.append(f"\t\t\t{_url(signature, imports)},")
    if signature.body is not None:
        lines.append(f"\t\t\t{signature.body.runtime_type.to_json('body')},")
    if signature.response is not None:
        decoded = signature.response.runtime_type.from_json(
            "json", context_literal(signature.response.context)
        )
        lines.append(f"\t\t\t(json: unknown) => {decoded},")
    lines.append("\t\t);")
    lines.append("\t}")
    return lines


def _url(signature: OperationSignature, imports: ImportSet) -> str:
    url = signature.operation.url
    query = [parameter for parameter in signature.parameters if parameter.location == "query"]
    if not url.has_params and not query:
        return json.dumps(url.original)

    imports.add_local(None, BASE_CLIENT_MODULE, "UrlBuilder")
    path_types = {
        parameter.name: parameter.runtime_type
        for parameter in signature.parameters
        if parameter.location == "path"
    }
    builder = "new UrlBuilder()"
    for part in url.parts:
        if part.kind == "literal":
            builder += f".addLiteral({json.dumps(part.value)})"
        else:
            builder += f".addPathParam({path_types[part.value].to_json(part.value)})"
    for parameter in query:
        builder += (
            f".addQuery({json.dumps(parameter.name)}, "
            f"{parameter.runtime_type.to_json(parameter.name)})"
        )
    return f"{builder}.toString()"
