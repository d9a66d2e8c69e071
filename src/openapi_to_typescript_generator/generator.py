"""End-to-end generation orchestration."""

from __future__ import annotations

import logging
from pathlib import Path

from .api_emitter import emit_api
from .client_emitter import emit_client
from .errors import InvalidIdentifierError
from .identifier import Identifier
from .index_emitter import emit_index
from .json_types import JSONObject
from .loader import document_parts, parse_openapi_document, read_openapi_text
from .model_emitter import emit_model
from .model_types import MODES, GeneratedFile, GeneratedTree, GenerationResult, Mode
from .operations import extract_operations
from .runtime_type import RuntimeTypeResolver
from .schema_shapes import build_registry
from .static_files import static_files
from .writer import content_hash, format_generated_tree, stored_hash, write_tree

logger = logging.getLogger(__name__)


def generate_files(document: JSONObject, mode: Mode) -> GeneratedTree:
    """Build every output file for ``document`` in memory.

    Args:
        document (JSONObject): A loaded and validated OpenAPI document.
        mode (Mode): ``"api"`` for server controllers, ``"client"`` for clients.

    Returns:
        GeneratedTree: Models, per-tag files, the index file and support files.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown generation mode {mode!r}; expected one of {', '.join(MODES)}")

    parts = document_parts(document)
    resolver = RuntimeTypeResolver(build_registry(parts.schemas))
    grouped = extract_operations(parts.paths, parts.tags)

    files: list[GeneratedFile] = []
    warnings: list[str] = []

    for name, schema in parts.schemas.items():
        files.append(emit_model(name, schema, resolver))
    logger.debug("Emitted %d model files", len(parts.schemas))

    emit_tag = emit_api if mode == "api" else emit_client
    tags: list[Identifier] = []
    # Tag file and class names, mapped back to the tag that claimed them.
    claimed: dict[str, str] = {}
    for name in sorted(grouped):
        tag_operations = grouped[name]
        if not tag_operations.operations:
            warnings.append(f"Tag {name!r} has no operations; no {mode} file was generated")
            continue
        ident = Identifier.from_words(name)
        for generated_name in dict.fromkeys((ident.kebab, ident.upper_camel)):
            if generated_name in claimed:
                raise InvalidIdentifierError(
                    f"Tags {claimed[generated_name]!r} and {name!r} "
                    f"both map to the name {generated_name!r}"
                )
            claimed[generated_name] = name
        files.append(emit_tag(tag_operations, resolver))
        tags.append(ident)
    logger.debug("Emitted %d %s files", len(tags), mode)

    files.append(emit_index(mode, tags))
    files.extend(static_files(mode))
    return GeneratedTree(files=tuple(files), warnings=tuple(warnings))


def run_generation(
    *,
    input_path: Path,
    output_dir: Path,
    mode: Mode,
    force: bool = False,
    format_output: bool = False,
) -> GenerationResult:
    """Generate TypeScript sources from an OpenAPI document.

    Generation is skipped when the output directory already holds the
    result for the same document, mode and generator version, unless
    ``force`` is set.

    Args:
        input_path (Path): Path to the input OpenAPI document.
        output_dir (Path): Directory replaced by the generated tree.
        mode (Mode): ``"api"`` or ``"client"``.
        force (bool): Regenerate even if the stored hash matches.
        format_output (bool): Run prettier over the written files.

    Returns:
        GenerationResult: Written paths, warnings and whether the run was skipped.
    """
    text = read_openapi_text(input_path)
    digest = content_hash(text, mode)
    if not force and stored_hash(output_dir) == digest:
        logger.info("%s is up to date with %s", output_dir, input_path)
        return GenerationResult(
            output_dir=str(output_dir),
            written_files=(),
            warnings=(),
            skipped=True,
        )

    document = parse_openapi_document(text, source=str(input_path))
    tree = generate_files(document, mode)

    written = write_tree(output_dir=output_dir, tree=tree, digest=digest)
    logger.info("Wrote %d files to %s", len(written), output_dir)

    if format_output:
        format_generated_tree(output_dir=output_dir)

    return GenerationResult(
        output_dir=str(output_dir),
        written_files=tuple(str(path) for path in written),
        warnings=tree.warnings,
        skipped=False,
    )
