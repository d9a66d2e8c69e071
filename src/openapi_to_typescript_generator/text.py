"""Small text helpers shared by the TypeScript emitters."""

from __future__ import annotations

import json
import re
from typing import Optional

FILE_HEADER = "/* tslint:disable */\n/* eslint-disable */\n"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def is_identifier(name: str) -> bool:
    """Whether ``name`` can be written as a bare TypeScript identifier."""
    return bool(_IDENTIFIER_RE.match(name))


def property_key(name: str) -> str:
    """Render ``name`` as an object-literal or type-member key."""
    return name if is_identifier(name) else json.dumps(name)


def property_access(target: str, name: str) -> str:
    """Render ``target.name``, using bracket access where required."""
    if is_identifier(name):
        return f"{target}.{name}"
    return f"{target}[{json.dumps(name)}]"


def split_lines(text: Optional[str]) -> list[str]:
    """Split a markdown description into lines, dropping outer whitespace."""
    if not text:
        return []
    return text.strip().splitlines()


def doc_comment(*lines: Optional[str], indent: str = "") -> list[str]:
    """Render lines as a ``/** ... */`` block.

    Leading and trailing empty lines are dropped and runs of empty lines are
    collapsed. A single line renders as a one-line comment.
    """
    content = [line or "" for line in lines]
    while content and not content[-1]:
        content.pop()
    while content and not content[0]:
        content.pop(0)
    if not content:
        return []
    if len(content) == 1:
        return [f"{indent}/** {_escape(content[0])} */"]

    rendered = [f"{indent}/**"]
    previous_empty = False
    for line in content:
        if line:
            rendered.append(f"{indent} * {_escape(line)}")
            previous_empty = False
        elif not previous_empty:
            rendered.append(f"{indent} *")
            previous_empty = True
    rendered.append(f"{indent} */")
    return rendered


def _escape(line: str) -> str:
    return line.replace("*/", "*\\/")


def render_file(*sections: str) -> str:
    """Join non-empty sections of a generated file with blank lines."""
    body = "\n\n".join(section.strip("\n") for section in sections if section.strip())
    return f"{FILE_HEADER}\n{body}\n"
