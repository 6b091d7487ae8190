"""Regex-level parsing of import statements.

Understands ES module imports (default, named, namespace and side-effect
forms, including ``import type`` and multi-line brace groups) and Python
``import``/``from ... import`` statements. It is a scanner, not a parser:
imports inside strings or comments are not distinguished from real ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

_JS_IMPORT_RE = re.compile(
    r"""^[ \t]*import\b(?P<clause>[^;'"`]*?)\bfrom\s*(?P<quote>['"])(?P<module>[^'"\n]+)(?P=quote)[ \t]*(?P<semi>;?)[ \t]*$""",
    re.MULTILINE,
)
_JS_SIDE_EFFECT_RE = re.compile(
    r"""^[ \t]*import\s*(?P<quote>['"])(?P<module>[^'"\n]+)(?P=quote)[ \t]*(?P<semi>;?)[ \t]*$""",
    re.MULTILINE,
)
_PY_FROM_RE = re.compile(
    r"^from[ \t]+(?P<module>\.*[\w.]*)[ \t]+import[ \t]+(?P<names>\([^)]*\)|[^\n#()]+?)[ \t]*(?:#[^\n]*)?$",
    re.MULTILINE,
)
_PY_IMPORT_RE = re.compile(
    r"^import[ \t]+(?P<module>[\w.]+)(?:[ \t]+as[ \t]+\w+)?(?:[ \t]*,[ \t]*[\w.]+(?:[ \t]+as[ \t]+\w+)?)*[ \t]*$",
    re.MULTILINE,
)
_NAMESPACE_RE = re.compile(r"\*\s*as\s+(?P<name>[\w$]+)")

FRAMEWORK_MODULES = frozenset(
    {
        "react",
        "react-dom",
        "react-native",
        "next",
        "vue",
        "nuxt",
        "svelte",
        "express",
        "@angular",
        "django",
        "flask",
        "fastapi",
        "starlette",
    }
)


class ImportGroup(StrEnum):
    """Import ordering groups, in output order."""

    FRAMEWORK = "framework"
    THIRD_PARTY = "third_party"
    LOCAL = "local"


_GROUP_ORDER = {
    ImportGroup.FRAMEWORK: 0,
    ImportGroup.THIRD_PARTY: 1,
    ImportGroup.LOCAL: 2,
}


@dataclass(frozen=True, slots=True)
class NamedImport:
    """One ``name`` or ``name as alias`` entry of a named import group."""

    imported: str
    local: str
    type_only: bool = False

    def render(self) -> str:
        prefix = "type " if self.type_only else ""
        if self.imported == self.local:
            return f"{prefix}{self.imported}"
        return f"{prefix}{self.imported} as {self.local}"


@dataclass(frozen=True, slots=True)
class ImportStatement:
    """A single import statement and its location in the source text."""

    text: str
    start: int
    end: int
    module: str
    syntax: Literal["js", "python"]
    default: str | None = None
    namespace: str | None = None
    named: tuple[NamedImport, ...] = ()
    type_only: bool = False
    quote: str = "'"
    semicolon: bool = False

    @property
    def group(self) -> ImportGroup:
        return classify_module(self.module, self.syntax)

    def without(self, drop: set[str]) -> str | None:
        """Render this statement minus the named imports whose local name is in ``drop``.

        Returns ``None`` when nothing would remain to import.
        """
        kept = tuple(item for item in self.named if item.local not in drop)
        if len(kept) == len(self.named):
            return self.text
        if self.syntax == "python":
            if not kept:
                return None
            names = ", ".join(item.render() for item in kept)
            return f"from {self.module} import {names}"

        parts: list[str] = []
        if self.default:
            parts.append(self.default)
        if self.namespace:
            parts.append(f"* as {self.namespace}")
        if kept:
            inner = ", ".join(item.render() for item in kept)
            parts.append(f"{{ {inner} }}")
        if not parts:
            return None
        indent = self.text[: len(self.text) - len(self.text.lstrip())]
        type_prefix = "type " if self.type_only else ""
        semi = ";" if self.semicolon else ""
        return (
            f"{indent}import {type_prefix}{', '.join(parts)} from "
            f"{self.quote}{self.module}{self.quote}{semi}"
        )


def classify_module(module: str, syntax: str = "js") -> ImportGroup:
    """Assign a module specifier to its ordering group."""
    if syntax == "python":
        if module.startswith("."):
            return ImportGroup.LOCAL
        root = module.split(".", 1)[0]
        return (
            ImportGroup.FRAMEWORK if root in FRAMEWORK_MODULES else ImportGroup.THIRD_PARTY
        )

    if module.startswith((".", "/", "@/", "~/")):
        return ImportGroup.LOCAL
    root = module.split("/", 1)[0]
    if root in FRAMEWORK_MODULES:
        return ImportGroup.FRAMEWORK
    return ImportGroup.THIRD_PARTY


def group_rank(statement: ImportStatement) -> int:
    return _GROUP_ORDER[statement.group]


def _parse_named(group: str, *, separator: str = ",") -> tuple[NamedImport, ...]:
    items: list[NamedImport] = []
    for raw in group.split(separator):
        entry = raw.strip()
        if not entry:
            continue
        type_only = False
        if entry.startswith("type "):
            type_only = True
            entry = entry[len("type ") :].strip()
        if " as " in entry:
            imported, local = (piece.strip() for piece in entry.split(" as ", 1))
        else:
            imported = local = entry
        if imported and local:
            items.append(NamedImport(imported=imported, local=local, type_only=type_only))
    return tuple(items)


def _parse_js_clause(
    clause: str,
) -> tuple[str | None, str | None, tuple[NamedImport, ...], bool]:
    body = clause.strip()
    type_only = False
    if body.startswith("type ") or body.startswith("type{"):
        type_only = True
        body = body[len("type") :].strip()

    named: tuple[NamedImport, ...] = ()
    if "{" in body and "}" in body:
        brace_start = body.index("{")
        brace_end = body.rindex("}")
        named = _parse_named(body[brace_start + 1 : brace_end])
        body = (body[:brace_start] + body[brace_end + 1 :]).strip()

    namespace: str | None = None
    match = _NAMESPACE_RE.search(body)
    if match:
        namespace = match.group("name")
        body = (body[: match.start()] + body[match.end() :]).strip()

    default = body.strip(" ,\n\t") or None
    return default, namespace, named, type_only


def find_imports(content: str) -> list[ImportStatement]:
    """Return every import statement in ``content`` ordered by position."""
    found: list[ImportStatement] = []

    for match in _JS_IMPORT_RE.finditer(content):
        default, namespace, named, type_only = _parse_js_clause(match.group("clause"))
        found.append(
            ImportStatement(
                text=match.group(0),
                start=match.start(),
                end=match.end(),
                module=match.group("module"),
                syntax="js",
                default=default,
                namespace=namespace,
                named=named,
                type_only=type_only,
                quote=match.group("quote"),
                semicolon=bool(match.group("semi")),
            )
        )

    for match in _JS_SIDE_EFFECT_RE.finditer(content):
        found.append(
            ImportStatement(
                text=match.group(0),
                start=match.start(),
                end=match.end(),
                module=match.group("module"),
                syntax="js",
                quote=match.group("quote"),
                semicolon=bool(match.group("semi")),
            )
        )

    for match in _PY_FROM_RE.finditer(content):
        names = match.group("names").strip().strip("()")
        star = names.strip() == "*"
        found.append(
            ImportStatement(
                text=match.group(0),
                start=match.start(),
                end=match.end(),
                module=match.group("module"),
                syntax="python",
                namespace="*" if star else None,
                named=() if star else _parse_named(names),
            )
        )

    for match in _PY_IMPORT_RE.finditer(content):
        found.append(
            ImportStatement(
                text=match.group(0),
                start=match.start(),
                end=match.end(),
                module=match.group("module"),
                syntax="python",
            )
        )

    found.sort(key=lambda statement: statement.start)
    return found


def is_referenced(name: str, text: str) -> bool:
    """True when identifier ``name`` occurs in ``text`` as a whole word."""
    pattern = rf"(?<![\w$]){re.escape(name)}(?![\w$])"
    return re.search(pattern, text) is not None


def unused_named_imports(
    content: str,
) -> list[tuple[ImportStatement, list[NamedImport]]]:
    """Pair each import statement with its named imports never used elsewhere.

    A name counts as used when it appears anywhere in the file outside the
    statement that imports it. Statements with no unused names are omitted.
    Python ``__future__`` imports are compiler directives and never unused.
    """
    result: list[tuple[ImportStatement, list[NamedImport]]] = []
    for statement in find_imports(content):
        if not statement.named or statement.module == "__future__":
            continue
        rest = content[: statement.start] + content[statement.end :]
        unused = [item for item in statement.named if not is_referenced(item.local, rest)]
        if unused:
            result.append((statement, unused))
    return result
