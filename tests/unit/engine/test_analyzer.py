"""Unit tests for code_evolution.engine.analyzer."""

from __future__ import annotations

import pytest

from code_evolution.engine.analyzer import (
    QUALITY_RULES,
    RULE_CONSOLE_STATEMENTS,
    RULE_ERROR_BOUNDARY,
    RULE_FETCH_ERROR_HANDLING,
    RULE_HARDCODED_URLS,
    RULE_LONG_FUNCTIONS,
    RULE_LOOSE_TYPES,
    RULE_MISSING_COMMENTS,
    RULE_UNUSED_IMPORTS,
    QualityRule,
    analyze,
    check_file,
)
from code_evolution.engine.models import SourceFile


def _rules(source: SourceFile) -> list[str]:
    return [issue.rule for issue in check_file(source)]


def _descriptions(source: SourceFile) -> dict[str, str]:
    return {issue.rule: issue.description for issue in check_file(source)}


# ---- Individual rules --------------------------------------------------------


class TestConsoleRule:
    def test_counts_console_calls(self) -> None:
        source = SourceFile(path="app.js", content="console.log(1)\nconsole.error(2)\n")
        assert _descriptions(source)[RULE_CONSOLE_STATEMENTS] == "contains 2 console statements"

    def test_no_console_no_finding(self) -> None:
        source = SourceFile(path="app.js", content="const a = 1\n")
        assert RULE_CONSOLE_STATEMENTS not in _rules(source)

    @pytest.mark.parametrize("path", ["app.test.js", "src/__tests__/x.js", "app.spec.ts"])
    def test_test_files_exempt(self, path: str) -> None:
        source = SourceFile(path=path, content="console.log('debug')\n")
        assert RULE_CONSOLE_STATEMENTS not in _rules(source)


class TestFetchRule:
    def test_unguarded_fetch(self) -> None:
        source = SourceFile(path="api.js", content="const r = await fetch('/api')\n")
        assert _descriptions(source)[RULE_FETCH_ERROR_HANDLING] == (
            "missing error handling for fetch calls"
        )

    def test_try_block_counts_as_handling(self) -> None:
        content = "try {\n  const r = await fetch('/api')\n} catch (e) {}\n"
        assert RULE_FETCH_ERROR_HANDLING not in _rules(SourceFile(path="api.js", content=content))

    def test_promise_catch_counts_as_handling(self) -> None:
        content = "fetch('/api').then(r => r.json()).catch(handle)\n"
        assert RULE_FETCH_ERROR_HANDLING not in _rules(SourceFile(path="api.js", content=content))

    def test_method_named_fetch_ignored(self) -> None:
        content = "const r = client.fetch('/api')\n"
        assert RULE_FETCH_ERROR_HANDLING not in _rules(SourceFile(path="api.js", content=content))


class TestLooseTypesRule:
    def test_typescript_any(self) -> None:
        source = SourceFile(path="x.ts", content="let a: any = 1\n")
        assert RULE_LOOSE_TYPES in _rules(source)

    def test_javascript_not_checked(self) -> None:
        source = SourceFile(path="x.js", content="let a: any = 1\n")
        assert RULE_LOOSE_TYPES not in _rules(source)

    def test_word_containing_any_ignored(self) -> None:
        source = SourceFile(path="x.ts", content="const company = 'many'\n")
        assert RULE_LOOSE_TYPES not in _rules(source)


class TestSizeRules:
    def test_long_file_with_functions(self) -> None:
        content = "function f() {\n" + "  step()\n" * 55 + "}\n"
        rules = _rules(SourceFile(path="big.js", content=content))
        assert RULE_LONG_FUNCTIONS in rules
        assert RULE_MISSING_COMMENTS in rules

    def test_short_file_not_long(self) -> None:
        content = "function f() {\n  step()\n}\n"
        assert RULE_LONG_FUNCTIONS not in _rules(SourceFile(path="small.js", content=content))

    def test_commented_file_not_flagged(self) -> None:
        content = "// Entry point\n" + "const a = 1\n" * 35
        assert RULE_MISSING_COMMENTS not in _rules(SourceFile(path="c.js", content=content))

    def test_python_docstring_counts_as_comment(self) -> None:
        content = '"""Module."""\n' + "a = 1\n" * 35
        assert RULE_MISSING_COMMENTS not in _rules(SourceFile(path="c.py", content=content))


class TestUnusedImportsRule:
    def test_reports_unused_names(self) -> None:
        content = "import { a, b } from './m'\nconsole.log(a)\n"
        description = _descriptions(SourceFile(path="u.js", content=content))[RULE_UNUSED_IMPORTS]
        assert description == "potentially unused imports: b"

    def test_all_used(self) -> None:
        content = "import { a } from './m'\nexport const z = a\n"
        assert RULE_UNUSED_IMPORTS not in _rules(SourceFile(path="u.js", content=content))

    def test_python_from_import(self) -> None:
        content = "from os import path, sep\n\nprint(path)\n"
        description = _descriptions(SourceFile(path="u.py", content=content))[RULE_UNUSED_IMPORTS]
        assert description == "potentially unused imports: sep"

    def test_future_import_not_reported(self) -> None:
        content = "from __future__ import annotations\n\n\ndef f() -> Later:\n    ...\n"
        assert RULE_UNUSED_IMPORTS not in _rules(SourceFile(path="m.py", content=content))


class TestHardcodedUrlRule:
    def test_url_in_source(self) -> None:
        source = SourceFile(path="api.js", content="const u = 'https://example.com'\n")
        assert RULE_HARDCODED_URLS in _rules(source)

    def test_config_paths_exempt(self) -> None:
        source = SourceFile(path="src/config/api.js", content="const u = 'https://example.com'\n")
        assert RULE_HARDCODED_URLS not in _rules(source)


class TestErrorBoundaryRule:
    def test_component_without_boundary(self, react_component: SourceFile) -> None:
        description = _descriptions(react_component)[RULE_ERROR_BOUNDARY]
        assert description == "React component missing error boundary"

    def test_component_with_boundary(self) -> None:
        content = (
            "import { ErrorBoundary } from 'react-error-boundary'\n"
            "export default function Page() { return <ErrorBoundary /> }\n"
        )
        assert RULE_ERROR_BOUNDARY not in _rules(SourceFile(path="Page.tsx", content=content))

    def test_plain_module_not_checked(self) -> None:
        source = SourceFile(path="util.ts", content="export default 1\n")
        assert RULE_ERROR_BOUNDARY not in _rules(source)


# ---- Battery behaviour -------------------------------------------------------


class TestCheckFile:
    @pytest.mark.parametrize(
        "path", ["README.md", "docs/readme.txt", "LICENSE", "CHANGELOG", "notes.md"]
    )
    def test_documentation_never_checked(self, path: str) -> None:
        content = "console.log('x')\nfetch('https://example.com')\n"
        assert check_file(SourceFile(path=path, content=content)) == []

    def test_issue_message_format(self, console_file: SourceFile) -> None:
        issue = check_file(console_file)[0]
        assert issue.message == "a.ts: contains 1 console statements"

    def test_failing_rule_is_skipped(self) -> None:
        def _boom(_facts: object) -> str | None:
            raise ValueError("bad input")

        rules = (QualityRule("boom", _boom), *QUALITY_RULES)
        issues = check_file(SourceFile(path="a.js", content="console.log(1)"), rules)
        assert [issue.rule for issue in issues] == [RULE_CONSOLE_STATEMENTS]

    def test_binary_looking_content_does_not_raise(self) -> None:
        content = "\x00\xff�{{{ 'unterminated \" `template ${ /* open"
        check_file(SourceFile(path="blob.js", content=content))


# ---- Report ------------------------------------------------------------------


class TestAnalyze:
    def test_deterministic(self) -> None:
        files = [
            SourceFile(path="a.ts", content="console.log('x')\nconst y=1"),
            SourceFile(path="b.py", content="import flask\n\napp = flask.Flask(__name__)\n"),
            SourceFile(path="README.md", content="# Title"),
        ]
        first = analyze(files)
        second = analyze(list(files))
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_readme_never_in_quality_issues(self) -> None:
        files = [
            SourceFile(path="README.md", content="console.log('x')\nhttps://example.com"),
            SourceFile(path="docs/Readme.txt", content="console.log('y')"),
        ]
        report = analyze(files)
        assert all("readme" not in issue.file_path.lower() for issue in report.quality_issues)

    def test_line_counts_and_main_language(self) -> None:
        files = [
            SourceFile(path="a.ts", content="a\nb"),
            SourceFile(path="b.py", content="a\nb\nc"),
            SourceFile(path="notes.md", content="1\n2\n3\n4\n5"),
        ]
        report = analyze(files)
        assert report.language_line_counts == {"TypeScript": 2, "Python": 3}
        assert report.main_language == "Python"

    def test_main_language_tie_goes_to_first_seen(self) -> None:
        files = [
            SourceFile(path="a.go", content="x\ny"),
            SourceFile(path="b.rs", content="x\ny"),
        ]
        assert analyze(files).main_language == "Go"

    def test_unknown_extension_ignored(self) -> None:
        report = analyze([SourceFile(path="data.xyz", content="1\n2")])
        assert report.language_line_counts == {}
        assert report.main_language == ""
        assert report.missing_files == []

    def test_frameworks_recorded_once(self) -> None:
        files = [
            SourceFile(path="a.jsx", content="import React from 'react'\n"),
            SourceFile(path="b.jsx", content="import { useState } from 'react'\n"),
            SourceFile(path="srv.js", content="const express = require('express')\n"),
        ]
        assert analyze(files).frameworks_detected == ["React", "Express"]

    def test_has_tests_from_path(self) -> None:
        assert analyze([SourceFile(path="a.test.ts", content="")]).has_tests

    def test_has_tests_from_content(self) -> None:
        content = "describe('x', () => { it('works', () => {}) })\n"
        assert analyze([SourceFile(path="checks.js", content=content)]).has_tests

    def test_no_tests(self) -> None:
        assert not analyze([SourceFile(path="app.js", content="submit(form)\n")]).has_tests

    def test_missing_files_for_typescript(self, clean_file: SourceFile) -> None:
        report = analyze([clean_file])
        assert report.missing_files == [
            "package.json",
            ".gitignore",
            "tsconfig.json",
            "README.md",
        ]

    def test_missing_files_satisfied_by_alternatives(self) -> None:
        files = [
            SourceFile(path="app.py", content="x = 1\n"),
            SourceFile(path="pyproject.toml", content="[project]\n"),
            SourceFile(path="docs/README.rst", content="Docs\n"),
        ]
        assert analyze(files).missing_files == [".gitignore"]

    def test_issue_order_follows_scan_then_rule_order(self) -> None:
        files = [
            SourceFile(path="b.js", content="console.log(1)\nfetch('https://x.io')\n"),
            SourceFile(path="a.js", content="console.log(2)\n"),
        ]
        issues = analyze(files).quality_issues
        assert [(i.file_path, i.rule) for i in issues] == [
            ("b.js", RULE_FETCH_ERROR_HANDLING),
            ("b.js", RULE_CONSOLE_STATEMENTS),
            ("b.js", RULE_HARDCODED_URLS),
            ("a.js", RULE_CONSOLE_STATEMENTS),
        ]

    def test_empty_input(self) -> None:
        report = analyze([])
        assert report.quality_issues == []
        assert report.missing_files == []
        assert not report.has_tests

    def test_known_paths_satisfy_missing_files(self, clean_file: SourceFile) -> None:
        tree = ["package.json", ".gitignore", "tsconfig.json", "README.md", "index.ts"]
        report = analyze([clean_file], known_paths=tree)
        assert report.missing_files == []
        assert report.language_line_counts == {"TypeScript": 1}

    def test_known_test_paths_count_as_tests(self, clean_file: SourceFile) -> None:
        report = analyze([clean_file], known_paths=["index.ts", "src/index.test.ts"])
        assert report.has_tests

    def test_known_non_code_paths_are_not_tests(self, clean_file: SourceFile) -> None:
        report = analyze([clean_file], known_paths=[".github/workflows/test.yml"])
        assert not report.has_tests
