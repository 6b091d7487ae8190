"""Unit tests for code_evolution.engine.imports."""

from __future__ import annotations

import pytest

from code_evolution.engine.imports import (
    ImportGroup,
    NamedImport,
    classify_module,
    find_imports,
    is_referenced,
    unused_named_imports,
)


class TestFindImports:
    def test_default_and_named(self) -> None:
        [statement] = find_imports(
            "import React, { useState as useLocal, type Props } from 'react';\n"
        )
        assert statement.module == "react"
        assert statement.default == "React"
        assert statement.named == (
            NamedImport(imported="useState", local="useLocal"),
            NamedImport(imported="Props", local="Props", type_only=True),
        )
        assert statement.semicolon
        assert statement.quote == "'"

    def test_namespace(self) -> None:
        [statement] = find_imports('import * as path from "path"\n')
        assert statement.namespace == "path"
        assert statement.default is None
        assert statement.quote == '"'

    def test_type_only(self) -> None:
        [statement] = find_imports("import type { User } from './types'\n")
        assert statement.type_only
        assert [item.local for item in statement.named] == ["User"]

    def test_side_effect(self) -> None:
        [statement] = find_imports("import './styles.css'\n")
        assert statement.module == "./styles.css"
        assert statement.named == ()

    def test_multiline_group(self) -> None:
        [statement] = find_imports("import {\n  a,\n  b,\n} from './m'\n")
        assert [item.local for item in statement.named] == ["a", "b"]

    def test_python_forms(self) -> None:
        content = "import json\nfrom .models import (User, Team)\nfrom os import *\n"
        statements = find_imports(content)
        assert [s.module for s in statements] == ["json", ".models", "os"]
        assert [item.local for item in statements[1].named] == ["User", "Team"]
        assert statements[2].namespace == "*"

    def test_ordered_by_position(self) -> None:
        content = "import './a.css'\nimport b from './b'\n"
        assert [s.module for s in find_imports(content)] == ["./a.css", "./b"]


class TestClassifyModule:
    @pytest.mark.parametrize(
        ("module", "group"),
        [
            ("react", ImportGroup.FRAMEWORK),
            ("react-dom/client", ImportGroup.FRAMEWORK),
            ("@angular/core", ImportGroup.FRAMEWORK),
            ("axios", ImportGroup.THIRD_PARTY),
            ("./utils", ImportGroup.LOCAL),
            ("@/lib/db", ImportGroup.LOCAL),
        ],
    )
    def test_js(self, module: str, group: ImportGroup) -> None:
        assert classify_module(module) is group

    @pytest.mark.parametrize(
        ("module", "group"),
        [
            ("django.db", ImportGroup.FRAMEWORK),
            ("requests", ImportGroup.THIRD_PARTY),
            (".models", ImportGroup.LOCAL),
        ],
    )
    def test_python(self, module: str, group: ImportGroup) -> None:
        assert classify_module(module, "python") is group


class TestWithout:
    def test_drops_named_entry(self) -> None:
        [statement] = find_imports("import { a, b } from './m'\n")
        assert statement.without({"b"}) == "import { a } from './m'"

    def test_nothing_left(self) -> None:
        [statement] = find_imports("import { a } from './m';\n")
        assert statement.without({"a"}) is None

    def test_unchanged_when_nothing_dropped(self) -> None:
        [statement] = find_imports("import { a } from './m'\n")
        assert statement.without({"z"}) == statement.text

    def test_python(self) -> None:
        [statement] = find_imports("from os import path, sep\n")
        assert statement.without({"sep"}) == "from os import path"


class TestUnusedNames:
    def test_reports_unused(self) -> None:
        [(statement, unused)] = unused_named_imports("import { a, b } from './m'\nuse(a)\n")
        assert statement.module == "./m"
        assert [item.local for item in unused] == ["b"]

    def test_all_used(self) -> None:
        assert unused_named_imports("import { a } from './m'\nuse(a)\n") == []

    def test_whole_word_matching(self) -> None:
        assert is_referenced("a", "use(a)")
        assert not is_referenced("a", "abc $a a_b")

    def test_future_import_never_unused(self) -> None:
        content = "from __future__ import annotations\nfrom os import sep\n"
        [(statement, unused)] = unused_named_imports(content)
        assert statement.module == "os"
        assert [item.local for item in unused] == ["sep"]
