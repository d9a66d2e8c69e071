"""Integration tests for generator behavior."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

import pytest

from openapi_to_typescript_generator.cli import main
from openapi_to_typescript_generator.errors import (
    InvalidIdentifierError,
    OperationShapeViolationError,
)
from openapi_to_typescript_generator.generator import generate_files, run_generation
from openapi_to_typescript_generator.writer import HASH_FILE_NAME, WriteError, content_hash

from .fixture_helpers import fixture_dir, load_fixture, parametrize_fixtures

_SRC_DIR = Path(__file__).resolve().parents[1] / "src"

_INLINE_OPENAPI_SPEC = """
openapi: 3.0.3
info:
  title: Inline Test API
  version: 1.0.0
tags:
  - name: widgets
  - name: unused
paths:
  /widgets:
    get:
      tags:
        - widgets
      operationId: widgetsList
      responses:
        "200":
          description: ok
components:
  schemas:
    Widget:
      type: object
      properties:
        id:
          type: string
"""


def _write_inline_openapi_spec(path: Path) -> None:
    path.write_text(_INLINE_OPENAPI_SPEC, encoding="utf-8")


@parametrize_fixtures()
@pytest.mark.parametrize("mode", ["api", "client"])
def test_generation_smoke(fixture_path: Path, mode: str, tmp_path: Path) -> None:
    """Generation should succeed for each fixture in both modes."""
    output_dir = tmp_path / fixture_path.stem
    result = run_generation(input_path=fixture_path, output_dir=output_dir, mode=mode)

    assert not result.skipped
    assert result.warnings == ()
    assert (output_dir / HASH_FILE_NAME).is_file()
    assert (output_dir / "validate.ts").is_file()
    index_name = "register-apis.ts" if mode == "api" else "clients.ts"
    assert (output_dir / index_name).is_file()
    for written in result.written_files:
        assert Path(written).is_file(), written


def test_generated_tree_layout() -> None:
    """The widget fixture produces one model per schema and one file per tag."""
    tree = generate_files(load_fixture("widgets.yaml"), "api")

    assert [generated.path for generated in tree.files] == [
        "model/status.ts",
        "model/user.ts",
        "model/widget.ts",
        "api/users.ts",
        "api/widgets.ts",
        "register-apis.ts",
        "base-api.ts",
        "validate.ts",
    ]
    widgets = {generated.path: generated.content for generated in tree.files}["api/widgets.ts"]
    assert "abstract list(status: Status | undefined, limit: number | undefined)" in widgets
    assert "return this.printResponse(() => result.map((x) => printWidget(x)));" in widgets
    assert "abstract getPart(widgetId: string, partId: number)" in widgets
    assert "await this.deletePart(widgetId, partId);" in widgets


def test_client_tree_includes_client_support() -> None:
    """Client mode emits clients and the client base class."""
    tree = generate_files(load_fixture("minimal.yaml"), "client")
    paths = [generated.path for generated in tree.files]
    assert paths == [
        "model/empty.ts",
        "client/health-check.ts",
        "clients.ts",
        "base-client.ts",
        "validate.ts",
    ]
    client = tree.files[1].content
    assert "export class HealthCheckClient extends BaseClient {" in client
    assert "(json: unknown) => validateBoolean(json, [\"ping\", \"200\", \"responseBody\"])," in client


def test_unknown_mode_is_rejected() -> None:
    """Only api and client modes exist."""
    with pytest.raises(ValueError, match="Unknown generation mode"):
        generate_files(load_fixture("minimal.yaml"), "server")  # type: ignore[arg-type]


def test_tags_without_operations_warn(tmp_path: Path) -> None:
    """A declared tag with no operations is reported, not generated."""
    spec_path = tmp_path / "inline_openapi.yaml"
    _write_inline_openapi_spec(spec_path)
    output_dir = tmp_path / "generated"

    result = run_generation(input_path=spec_path, output_dir=output_dir, mode="api")

    assert result.warnings == ("Tag 'unused' has no operations; no api file was generated",)
    assert (output_dir / "api" / "widgets.ts").is_file()
    assert not (output_dir / "api" / "unused.ts").exists()


def test_warnings_are_returned_not_logged(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Warnings reach the caller once, through the result."""
    spec_path = tmp_path / "inline_openapi.yaml"
    _write_inline_openapi_spec(spec_path)

    with caplog.at_level(logging.DEBUG, logger="openapi_to_typescript_generator"):
        result = run_generation(input_path=spec_path, output_dir=tmp_path / "generated", mode="api")

    assert len(result.warnings) == 1
    assert not [record for record in caplog.records if "has no operations" in record.getMessage()]


@pytest.mark.parametrize("other_tag", ["Pet Store", "PET  store"])
def test_colliding_tag_names_fail(other_tag: str) -> None:
    """Two tags may not share a generated file or class name."""
    operation = {"responses": {"200": {"description": "ok"}}}
    document = {
        "tags": [{"name": "pet store"}, {"name": other_tag}],
        "paths": {
            "/a": {"get": {**operation, "tags": ["pet store"], "operationId": "listA"}},
            "/b": {"get": {**operation, "tags": [other_tag], "operationId": "listB"}},
        },
        "components": {"schemas": {}},
    }
    with pytest.raises(InvalidIdentifierError, match="both map to the name"):
        generate_files(document, "client")


def test_unchanged_input_is_skipped(tmp_path: Path) -> None:
    """A matching content hash skips regeneration unless forced."""
    spec_path = tmp_path / "inline_openapi.yaml"
    _write_inline_openapi_spec(spec_path)
    output_dir = tmp_path / "generated"

    first = run_generation(input_path=spec_path, output_dir=output_dir, mode="client")
    stored = (output_dir / HASH_FILE_NAME).read_text(encoding="utf-8").strip()
    assert stored == content_hash(_INLINE_OPENAPI_SPEC, "client")
    assert first.written_files

    second = run_generation(input_path=spec_path, output_dir=output_dir, mode="client")
    assert second.skipped
    assert second.written_files == ()

    forced = run_generation(input_path=spec_path, output_dir=output_dir, mode="client", force=True)
    assert not forced.skipped
    assert sorted(forced.written_files) == sorted(first.written_files)


def test_mode_change_regenerates(tmp_path: Path) -> None:
    """The hash covers the mode, so switching modes replaces the tree."""
    spec_path = tmp_path / "inline_openapi.yaml"
    _write_inline_openapi_spec(spec_path)
    output_dir = tmp_path / "generated"

    run_generation(input_path=spec_path, output_dir=output_dir, mode="client")
    result = run_generation(input_path=spec_path, output_dir=output_dir, mode="api")

    assert not result.skipped
    assert (output_dir / "register-apis.ts").is_file()
    assert not (output_dir / "client").exists()


def test_foreign_output_directory_is_not_replaced(tmp_path: Path) -> None:
    """A non-empty directory without a hash file is left untouched."""
    spec_path = tmp_path / "inline_openapi.yaml"
    _write_inline_openapi_spec(spec_path)
    output_dir = tmp_path / "existing"
    output_dir.mkdir()
    (output_dir / "keep.txt").write_text("mine", encoding="utf-8")

    with pytest.raises(WriteError, match="not generated by this tool"):
        run_generation(input_path=spec_path, output_dir=output_dir, mode="api")
    assert (output_dir / "keep.txt").read_text(encoding="utf-8") == "mine"


def test_invalid_document_writes_nothing(tmp_path: Path) -> None:
    """Generation failures abort before the output directory is touched."""
    spec_path = tmp_path / "inline_openapi.yaml"
    spec_path.write_text(_INLINE_OPENAPI_SPEC.replace("      tags:\n        - widgets\n", ""), encoding="utf-8")
    output_dir = tmp_path / "generated"

    with pytest.raises(OperationShapeViolationError, match="GET /widgets"):
        run_generation(input_path=spec_path, output_dir=output_dir, mode="api")
    assert not output_dir.exists()


def test_generation_invokes_prettier_formatting(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Generation should call the formatter hook when asked to."""
    fixture_path = fixture_dir() / "minimal.yaml"
    output_dir = tmp_path / "formatted"
    captured: dict[str, Path] = {}

    def _fake_format(*, output_dir: Path) -> None:
        captured["output_dir"] = output_dir

    monkeypatch.setattr(
        "openapi_to_typescript_generator.generator.format_generated_tree",
        _fake_format,
    )

    run_generation(input_path=fixture_path, output_dir=output_dir, mode="api", format_output=True)
    assert captured == {"output_dir": output_dir}


def test_cli_generates_and_reports(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """The CLI prints warnings and a summary line."""
    spec_path = tmp_path / "inline_openapi.yaml"
    _write_inline_openapi_spec(spec_path)
    output_dir = tmp_path / "generated"
    argv = ["--input", str(spec_path), "--mode", "api", "--output", str(output_dir)]

    assert main(argv) == 0
    out = capsys.readouterr().out
    assert "Warning: Tag 'unused' has no operations" in out
    assert f"files in {output_dir}" in out

    assert main(argv) == 0
    assert "is up to date" in capsys.readouterr().out


def test_cli_reports_generation_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Generation errors exit with a usage error."""
    spec_path = tmp_path / "broken.yaml"
    spec_path.write_text("openapi: [", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["--input", str(spec_path), "--mode", "client", "--output", str(tmp_path / "out")])
    assert excinfo.value.code == 2
    assert "Failed to parse YAML" in capsys.readouterr().err


def test_cli_help_screen() -> None:
    """Running the CLI help should succeed and print usage information."""
    env = {**os.environ, "PYTHONPATH": os.pathsep.join(filter(None, [str(_SRC_DIR), os.environ.get("PYTHONPATH")]))}
    result = subprocess.run(
        [sys.executable, "-m", "openapi_to_typescript_generator", "--help"],
        check=False,
        capture_output=True,
        text=True,
        env=env,
    )
    assert result.returncode == 0
    assert "usage:" in result.stdout.lower()
    assert "--mode" in result.stdout
