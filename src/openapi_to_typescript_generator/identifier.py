"""Name casing shared by type names, file names and variable names."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import InvalidIdentifierError

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[^A-Z])(?=[A-Z])")
_WHITESPACE_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"^[A-Za-z0-9_]+$")


@dataclass(frozen=True)
class Identifier:
    """One raw name rendered in the four casings used by generated code.

    ``lower_camel`` and ``upper_camel`` name variables and types, ``display``
    is used in doc comments and ``kebab`` names generated files.
    """

    lower_camel: str
    upper_camel: str
    display: str
    kebab: str

    @classmethod
    def from_camel(cls, raw: str) -> Identifier:
        """Split ``raw`` at every lowercase-to-uppercase hump."""
        text = raw.strip()
        if not text:
            raise InvalidIdentifierError(f"Expected a non-empty camelCase name, got {raw!r}")
        return cls._from_words(raw, _CAMEL_BOUNDARY_RE.split(text))

    @classmethod
    def from_words(cls, raw: str) -> Identifier:
        """Split ``raw`` on whitespace."""
        text = raw.strip()
        if not text:
            raise InvalidIdentifierError(f"Expected a non-empty name, got {raw!r}")
        return cls._from_words(raw, _WHITESPACE_RE.split(text))

    @classmethod
    def _from_words(cls, raw: str, words: list[str]) -> Identifier:
        for word in words:
            if not _WORD_RE.match(word):
                raise InvalidIdentifierError(
                    f"Unable to build an identifier from {raw!r}: "
                    f"unexpected characters in {word!r}"
                )
        if words[0][0].isdigit():
            raise InvalidIdentifierError(
                f"Unable to build an identifier from {raw!r}: must not start with a digit"
            )

        lowered = [word.lower() for word in words]
        capitalized = [word[:1].upper() + word[1:] for word in lowered]
        return cls(
            lower_camel=lowered[0] + "".join(capitalized[1:]),
            upper_camel="".join(capitalized),
            display=" ".join(words),
            kebab="-".join(lowered),
        )
