"""
Index declaration grammar.

A declaration names the index keys in braces, followed by option flags::

    {name},unique,sparse          simple index on name
    {name,surname},unique         compound index on name then surname
    {-created}                    descending index on created

A compound index may be declared from several fields of the same type;
each declaring site produces its own ParsedIndex, and sites that lower to
the same keys and options collapse into one native index.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from bongo.core.errors import IndexGrammarError
from bongo.specs.index import INDEX_OPTIONS, ParsedIndex

_DECLARATION_RE = re.compile(r"^\{(?P<keys>[^{}]*)\}(?P<options>(?:\s*,[^{},]*)*)$")
_KEY_RE = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*$")


def parse_index(declaration: str | None, own_path: str | None = None) -> list[ParsedIndex]:
    """Parse one index declaration.

    Args:
        declaration: Declaration string; ``None`` or blank means no index.
        own_path: Storage path of the declaring field, or ``None`` for a
            type-level declaration.

    Returns:
        A list holding the single ParsedIndex, or an empty list.

    Raises:
        IndexGrammarError: If the declaration is malformed.
    """
    if declaration is None or not declaration.strip():
        return []

    text = declaration.strip()
    match = _DECLARATION_RE.match(text)
    if not match:
        raise IndexGrammarError(declaration, "expected '{key[,key...]}[,option...]'")

    keys = tuple(k.strip() for k in match.group("keys").split(","))
    for key in keys:
        if not key:
            raise IndexGrammarError(declaration, "empty key in key list")
        if not _KEY_RE.match(key):
            raise IndexGrammarError(declaration, f"invalid key '{key}'")

    bare = [k.lstrip("-") for k in keys]
    duplicates = sorted({k for k in bare if bare.count(k) > 1})
    if duplicates:
        raise IndexGrammarError(declaration, f"duplicate key(s) {', '.join(duplicates)}")

    options = _parse_options(declaration, match.group("options"))
    position = _position(bare, own_path)

    return [
        ParsedIndex(
            fields=keys,
            options=options,
            position=position,
            descending=keys[position].startswith("-"),
        )
    ]


def parse_index_declarations(
    declarations: Iterable[str], own_path: str | None = None
) -> list[ParsedIndex]:
    """Parse every declaration made at one site, in order."""
    parsed: list[ParsedIndex] = []
    for declaration in declarations:
        parsed.extend(parse_index(declaration, own_path))
    return parsed


def _parse_options(declaration: str, raw: str) -> tuple[str, ...]:
    if not raw.strip():
        return ()
    options: list[str] = []
    # raw starts with a comma, so the first element is always empty
    for option in raw.split(",")[1:]:
        name = option.strip().lower()
        if not name:
            raise IndexGrammarError(declaration, "empty option")
        if name not in INDEX_OPTIONS:
            raise IndexGrammarError(
                declaration,
                f"unknown option '{name}' (valid: {', '.join(INDEX_OPTIONS)})",
            )
        if name not in options:
            options.append(name)
    return tuple(options)


def _position(keys: list[str], own_path: str | None) -> int:
    """Place of the declaring field among the keys; the last key otherwise."""
    if own_path is not None and own_path in keys:
        return keys.index(own_path)
    return len(keys) - 1
