"""Emit one ``model/<name>.ts`` file per named component schema."""

from __future__ import annotations

import json
from typing import Any

from .identifier import Identifier
from .imports import ImportSet
from .model_types import GeneratedFile
from .runtime_type import RuntimeTypeResolver, context_literal
from .schema_shapes import EnumShape, ObjectShape, classify_schema
from .text import doc_comment, property_access, property_key, render_file, split_lines

MODEL_FOLDER = "model"


def emit_model(raw_name: str, schema: Any, resolver: RuntimeTypeResolver) -> GeneratedFile:
    """Render the type, printer and validator of one component schema.

    Args:
        raw_name (str): Key of the schema under ``components.schemas``.
        schema (Any): The schema node.
        resolver (RuntimeTypeResolver): Resolver used for every property.

    Returns:
        GeneratedFile: ``model/<kebab-name>.ts``.
    """
    ident = Identifier.from_camel(raw_name)
    shape = classify_schema(schema, (ident.upper_camel,))
    description = schema.get("description")
    if isinstance(shape, EnumShape):
        content = _enum_model(ident.upper_camel, shape, description)
    elif isinstance(shape, ObjectShape):
        content = _object_model(ident.upper_camel, shape, description, resolver)
    else:
        # build_registry has already rejected every other shape.
        raise AssertionError(f"Unexpected model shape for {ident.upper_camel}: {shape!r}")
    return GeneratedFile(path=f"{MODEL_FOLDER}/{ident.kebab}.ts", content=content)


def _enum_model(name: str, shape: EnumShape, description: Any) -> str:
    imports = ImportSet(MODEL_FOLDER)
    imports.add_validate("validateOneOf")
    literals = [json.dumps(value) for value in shape.values]

    lines: list[str] = []
    lines.extend(doc_comment(*split_lines(description)))
    lines.append(f"export type {name} = {' | '.join(literals)};")
    lines.append("")
    lines.append(f"/** Array of {name} values. */")
    lines.append(f"export const values{name}: ReadonlyArray<{name}> = [{', '.join(literals)}];")
    lines.append("")
    lines.append(f"/** Convert from {name} to JSON. */")
    lines.append(f"export const print{name} = (value: {name}): any => value;")
    lines.append("")
    lines.append(f"/** Convert from JSON to {name}. */")
    lines.append(
        f"export const validate{name} = (json: unknown, context: string[] = []): {name} =>"
    )
    lines.append(f"\tvalidateOneOf(json, values{name}, {context_literal([name], parent='context')});")
    return render_file(imports.render(), "\n".join(lines))


def _object_model(
    name: str,
    shape: ObjectShape,
    description: Any,
    resolver: RuntimeTypeResolver,
) -> str:
    imports = ImportSet(MODEL_FOLDER)
    imports.add_validate("validateObject")

    members: list[str] = []
    printers: list[str] = []
    validators: list[str] = []
    for property_name, property_schema in shape.properties.items():
        required = property_name in shape.required
        runtime_type = resolver.resolve(
            property_schema,
            imports,
            required=required,
            context=(name, property_name),
        )
        key = property_key(property_name)

        if "$ref" not in property_schema:
            members.extend(
                doc_comment(*split_lines(property_schema.get("description")), indent="\t")
            )
        members.append(f"\treadonly {key}{'' if required else '?'}: {runtime_type.type_name};")

        printers.append(f"\t{key}: {runtime_type.to_json(property_access('value', property_name))},")

        runtime_context = context_literal([name, property_name], parent="context")
        decoded = runtime_type.from_json(property_access("object", property_name), runtime_context)
        validators.append(f"\t\t{key}: {decoded},")

    lines: list[str] = []
    lines.extend(doc_comment(*split_lines(description)))
    if members:
        lines.append(f"export type {name} = {{")
        lines.extend(members)
        lines.append("};")
    else:
        lines.append(f"export type {name} = Record<string, never>;")
    lines.append("")
    lines.append(f"/** Convert from {name} to JSON. */")
    lines.append(f"export const print{name} = (value: {name}): any => {{")
    lines.append(f"\tvalidateObject(value, {context_literal([name])});")
    lines.append("\treturn {")
    lines.extend(f"\t{printer}" for printer in printers)
    lines.append("\t};")
    lines.append("};")
    lines.append("")
    lines.append(f"/** Convert from JSON to {name}. */")
    lines.append(
        f"export const validate{name} = (json: unknown, context: string[] = []): {name} => {{"
    )
    lines.append("\tconst object = validateObject(json, context);")
    lines.append("\treturn {")
    lines.extend(validators)
    lines.append("\t};")
    lines.append("};")
    return render_file(imports.render(), "\n".join(lines))
