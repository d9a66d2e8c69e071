"""Emit abstract server controllers, one ``api/<tag>.ts`` per tag."""

from __future__ import annotations

import json

from .identifier import Identifier
from .imports import ImportSet
from .model_types import GeneratedFile
from .operations import TagOperations
from .runtime_type import RuntimeTypeResolver, context_literal
from .signature import OperationSignature, build_signatures
from .text import doc_comment, render_file, split_lines

API_FOLDER = "api"
RESULT_VARIABLE = "result"


def emit_api(tag_operations: TagOperations, resolver: RuntimeTypeResolver) -> GeneratedFile:
    """Render the abstract controller of one tag.

    The class declares one abstract method per operation and a
    ``registerEndpoints`` method that binds every route on an Express app,
    decoding parameters and body before calling the abstract method and
    printing its result.
    """
    tag = Identifier.from_words(tag_operations.name)
    imports = ImportSet(API_FOLDER)
    imports.add_local(None, "base-api", "BaseApi")
    imports.add_global("express", "Express")
    imports.add_global("express", "Request")
    imports.add_global("express", "Response")

    signatures = build_signatures(tag_operations, resolver, imports)

    lines: list[str] = []
    lines.extend(doc_comment(f"{tag.display} api.", "", *split_lines(tag_operations.description)))
    lines.append(f"export abstract class {tag.upper_camel}Api extends BaseApi {{")
    for signature in signatures:
        lines.extend(doc_comment(*signature.doc_lines(), indent="\t"))
        lines.append(
            f"\tabstract {signature.method_name}({', '.join(signature.arguments())}): "
            f"Promise<{signature.return_type}>;"
        )
        lines.append("")

    lines.append("\t/** Register all endpoints. */")
    lines.append("\tregisterEndpoints(app: Express): void {")
    for signature in signatures:
        lines.extend(_route(signature))
    lines.append("\t}")
    lines.append("}")

    return GeneratedFile(
        path=f"{API_FOLDER}/{tag.kebab}.ts",
        content=render_file(imports.render(), "\n".join(lines)),
    )


def _route(signature: OperationSignature) -> list[str]:
    operation = signature.operation
    route = json.dumps(operation.url.route_pattern())
    lines = [
        f"\t\tapp.{operation.method.lower()}({route}, (req: Request, res: Response) =>",
        "\t\t\tthis.handleResponse(res, (async () => {",
    ]

    if signature.body is not None:
        decoded = signature.body.runtime_type.from_json(
            "req.body", context_literal(signature.body.context)
        )
        lines.append(f"\t\t\t\tconst body = {decoded};")
    for parameter in signature.parameters:
        source = f"req.{'params' if parameter.location == 'path' else 'query'}.{parameter.name}"
        decoded = parameter.runtime_type.from_json_param(
            source, context_literal(parameter.context)
        )
        lines.append(f"\t\t\t\tconst {parameter.name} = {decoded};")

    call = f"this.{signature.method_name}({', '.join(signature.argument_names())})"
    if signature.response is None:
        lines.append(f"\t\t\t\tawait {call};")
    else:
        lines.append(f"\t\t\t\tconst {RESULT_VARIABLE} = await {call};")
        response_type = signature.response.runtime_type
        if response_type.has_printer:
            printed = response_type.to_json(RESULT_VARIABLE)
            lines.append(f"\t\t\t\treturn this.printResponse(() => {printed});")
        else:
            lines.append(f"\t\t\t\treturn {RESULT_VARIABLE};")
    lines.append("\t\t\t})()),")
    lines.append("\t\t);")
    return lines
