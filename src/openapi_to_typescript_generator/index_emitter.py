"""Emit the aggregate ``register-apis.ts`` or ``clients.ts`` file."""

from __future__ import annotations

from .identifier import Identifier
from .imports import ImportSet
from .model_types import GeneratedFile, Mode
from .text import render_file


def emit_index(mode: Mode, tags: list[Identifier]) -> GeneratedFile:
    """Render the file wiring every tag's controller or client together."""
    if mode == "api":
        return _register_apis(tags)
    return _clients(tags)


def _register_apis(tags: list[Identifier]) -> GeneratedFile:
    imports = ImportSet(None)
    imports.add_global("express", "Express")
    for tag in tags:
        imports.add_local("api", tag.kebab, f"{tag.upper_camel}Api")

    lines = ["/** Controllers for every api tag. */", "export type Apis = {"]
    lines.extend(f"\treadonly {tag.lower_camel}: {tag.upper_camel}Api;" for tag in tags)
    lines.append("};")
    lines.append("")
    lines.append("/** Register the endpoints of every controller. */")
    lines.append("export const registerApis = (apis: Apis, app: Express): void => {")
    lines.extend(f"\tapis.{tag.lower_camel}.registerEndpoints(app);" for tag in tags)
    lines.append("};")
    return GeneratedFile(
        path="register-apis.ts",
        content=render_file(imports.render(), "\n".join(lines)),
    )


def _clients(tags: list[Identifier]) -> GeneratedFile:
    imports = ImportSet(None)
    imports.add_local(None, "base-client", "ClientConfig")
    for tag in tags:
        imports.add_local("client", tag.kebab, f"{tag.upper_camel}Client")

    lines = ["/** Clients for every api tag, sharing one base config. */", "export class Clients {"]
    lines.extend(f"\tpublic readonly {tag.lower_camel}: {tag.upper_camel}Client;" for tag in tags)
    lines.append("")
    lines.append("\tconstructor(baseConfig: ClientConfig) {")
    lines.extend(
        f"\t\tthis.{tag.lower_camel} = new {tag.upper_camel}Client(baseConfig);" for tag in tags
    )
    lines.append("\t}")
    lines.append("}")
    return GeneratedFile(
        path="clients.ts",
        content=render_file(imports.render(), "\n".join(lines)),
    )
