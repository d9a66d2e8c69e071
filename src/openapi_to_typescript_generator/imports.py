"""Per-file accumulation and rendering of TypeScript import statements."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Literal, Optional, TypeAlias

from .errors import ConflictingDefaultImportError

ImportFolder: TypeAlias = Optional[Literal["api", "client", "model"]]

VALIDATE_MODULE = "validate"


@dataclass
class _ModuleImports:
    default: Optional[str] = None
    named: set[str] = field(default_factory=set)


class ImportSet:
    """Imports required by one generated file.

    The set is scoped to the logical folder the file lives in so that local
    imports can be rendered as relative module paths.
    """

    def __init__(self, folder: ImportFolder) -> None:
        self._folder = folder
        self._modules: dict[str, _ModuleImports] = {}

    @property
    def folder(self) -> ImportFolder:
        """Folder of the file owning this import set."""
        return self._folder

    def add_global(self, module: str, name: str, *, default: bool = False) -> None:
        """Register an import from ``module``.

        Args:
            module (str): Module specifier as written in the import statement.
            name (str): Imported symbol, or the local alias of a default import.
            default (bool): Whether ``name`` is the module's default export.
        """
        entry = self._modules.setdefault(module, _ModuleImports())
        if not default:
            entry.named.add(name)
            return
        if entry.default is not None and entry.default != name:
            raise ConflictingDefaultImportError(
                f"Default import of {module!r} already registered as {entry.default!r}, "
                f"cannot also import it as {name!r}"
            )
        entry.default = name

    def add_local(
        self,
        folder: ImportFolder,
        file: str,
        name: str,
        *,
        default: bool = False,
    ) -> None:
        """Register an import from another generated file."""
        self.add_global(f"{self._relative_prefix(folder)}/{file}", name, default=default)

    def add_validate(self, name: str) -> None:
        """Register an import from the shared runtime validation module."""
        self.add_local(None, VALIDATE_MODULE, name)

    def _relative_prefix(self, folder: ImportFolder) -> str:
        if folder == self._folder:
            return "."
        if folder is None:
            return ".."
        if self._folder is None:
            return f"./{folder}"
        return f"../{folder}"

    def render(self) -> str:
        """Render one import statement per module, sorted by module then name."""
        lines: list[str] = []
        for module in sorted(self._modules):
            entry = self._modules[module]
            symbols = sorted(entry.named)
            if entry.default is not None:
                symbols.insert(0, f"default as {entry.default}")
            lines.append(f"import {{ {', '.join(symbols)} }} from {json.dumps(module)};")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()
