"""Boilerplate for files the engine proposes to create.

``generate`` renders canonical content for a missing project file and
``generate_test`` renders a starter test module for an untested source
file. Both are driven only by the analysis report.
"""

from __future__ import annotations

import json
import posixpath
import re
from collections.abc import Callable

from code_evolution.engine.languages import file_extension
from code_evolution.engine.models import AnalysisReport, SourceFile

_GITIGNORE_BASE = [
    "# Dependencies",
    "node_modules/",
    "",
    "# Build output",
    "dist/",
    "build/",
    ".next/",
    "out/",
    "coverage/",
    "",
    "# Environment",
    ".env",
    ".env.local",
    ".env.*.local",
    "",
    "# Logs and editor files",
    "*.log",
    "npm-debug.log*",
    ".DS_Store",
    ".idea/",
    ".vscode/",
]

_GITIGNORE_LANGUAGE_EXTRAS: dict[str, list[str]] = {
    "Python": [
        "# Python",
        "__pycache__/",
        "*.py[cod]",
        ".venv/",
        "venv/",
        ".pytest_cache/",
        ".mypy_cache/",
        "*.egg-info/",
    ],
    "Java": [
        "# Java",
        "target/",
        "*.class",
        "*.jar",
        ".gradle/",
    ],
}

_FRAMEWORK_PACKAGES: dict[str, dict[str, str]] = {
    "React": {"react": "^18.2.0", "react-dom": "^18.2.0"},
    "Next.js": {"next": "^14.0.0"},
    "Vue": {"vue": "^3.4.0"},
    "Svelte": {"svelte": "^4.2.0"},
    "Express": {"express": "^4.18.2"},
}

_PYTHON_FRAMEWORK_REQUIREMENTS: dict[str, str] = {
    "Django": "django>=4.2",
    "Flask": "flask>=3.0",
    "FastAPI": "fastapi>=0.110",
}

_JS_EXPORT_RE = re.compile(
    r"^export\s+(?:async\s+)?(?:function\*?|const|let|class)\s+(?P<name>[A-Za-z_$][\w$]*)",
    re.MULTILINE,
)
_PY_PUBLIC_DEF_RE = re.compile(r"^(?:async\s+)?def\s+(?P<name>[A-Za-z]\w*)\s*\(", re.MULTILINE)


# ---------------------------------------------------------------------------
# Missing project files
# ---------------------------------------------------------------------------


def _gitignore(report: AnalysisReport) -> str:
    lines = list(_GITIGNORE_BASE)
    extras = _GITIGNORE_LANGUAGE_EXTRAS.get(report.main_language)
    if extras:
        lines.extend(["", *extras])
    return "\n".join(lines) + "\n"


def _package_json(report: AnalysisReport) -> str:
    dependencies: dict[str, str] = {}
    for framework in report.frameworks_detected:
        dependencies.update(_FRAMEWORK_PACKAGES.get(framework, {}))

    dev_dependencies: dict[str, str] = {}
    if report.main_language == "TypeScript":
        dev_dependencies["typescript"] = "^5.3.0"

    manifest: dict[str, object] = {
        "name": "app",
        "version": "0.1.0",
        "private": True,
        "scripts": {
            "build": "tsc" if report.main_language == "TypeScript" else "echo \"no build step\"",
            "test": "echo \"Error: no test specified\" && exit 1",
        },
        "dependencies": dict(sorted(dependencies.items())),
        "devDependencies": dev_dependencies,
    }
    return json.dumps(manifest, indent=2) + "\n"


def _tsconfig(report: AnalysisReport) -> str:
    compiler_options: dict[str, object] = {
        "target": "ES2020",
        "module": "ESNext",
        "moduleResolution": "node",
        "strict": True,
        "esModuleInterop": True,
        "skipLibCheck": True,
        "forceConsistentCasingInFileNames": True,
        "outDir": "dist",
    }
    if "React" in report.frameworks_detected or "Next.js" in report.frameworks_detected:
        compiler_options["jsx"] = "react-jsx"
    config = {
        "compilerOptions": compiler_options,
        "include": ["**/*.ts", "**/*.tsx"],
        "exclude": ["node_modules", "dist"],
    }
    return json.dumps(config, indent=2) + "\n"


def _requirements(report: AnalysisReport) -> str:
    lines = ["# Runtime dependencies, one per line (pin versions for reproducible installs)"]
    lines.extend(
        requirement
        for framework, requirement in _PYTHON_FRAMEWORK_REQUIREMENTS.items()
        if framework in report.frameworks_detected
    )
    return "\n".join(lines) + "\n"


def _pom(report: AnalysisReport) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<project xmlns="http://maven.apache.org/POM/4.0.0">\n'
        "  <modelVersion>4.0.0</modelVersion>\n"
        "  <groupId>com.example</groupId>\n"
        "  <artifactId>app</artifactId>\n"
        "  <version>0.1.0</version>\n"
        "  <properties>\n"
        "    <maven.compiler.release>17</maven.compiler.release>\n"
        "  </properties>\n"
        "</project>\n"
    )


def _go_mod(report: AnalysisReport) -> str:
    return "module example.com/app\n\ngo 1.21\n"


def _cargo_toml(report: AnalysisReport) -> str:
    return '[package]\nname = "app"\nversion = "0.1.0"\nedition = "2021"\n\n[dependencies]\n'


def _readme(report: AnalysisReport) -> str:
    lines = ["# Project", ""]
    stack = [report.main_language, *report.frameworks_detected] if report.main_language else []
    if stack:
        lines.extend([f"Built with {', '.join(stack)}.", ""])
    lines.extend(
        [
            "## Getting Started",
            "",
            "Describe how to install dependencies and run the project here.",
            "",
            "## Testing",
            "",
            "Describe how to run the test suite here.",
        ]
    )
    return "\n".join(lines) + "\n"


_GENERATORS: dict[str, Callable[[AnalysisReport], str]] = {
    ".gitignore": _gitignore,
    "package.json": _package_json,
    "tsconfig.json": _tsconfig,
    "requirements.txt": _requirements,
    "pom.xml": _pom,
    "go.mod": _go_mod,
    "cargo.toml": _cargo_toml,
    "readme.md": _readme,
}


def generate(filename: str, report: AnalysisReport) -> str:
    """Render boilerplate content for a missing project file.

    Raises:
        KeyError: If ``filename`` has no template.
    """
    generator = _GENERATORS.get(filename.lower())
    if generator is None:
        raise KeyError(f"No template for {filename!r}")
    return generator(report)


# ---------------------------------------------------------------------------
# Test skeletons
# ---------------------------------------------------------------------------


def starter_test_path(path: str) -> str:
    """Where the starter test for ``path`` lives."""
    directory, name = posixpath.split(path)
    stem, _, extension = name.rpartition(".")
    if not stem:
        stem, extension = name, ""
    if file_extension(path) == "py":
        return posixpath.join(directory, "tests", f"test_{stem}.py")
    if file_extension(path) in {"js", "jsx", "ts", "tsx"}:
        return posixpath.join(directory, f"{stem}.test.{extension}")
    suffix = f".{extension}" if extension else ""
    return posixpath.join(directory, f"{stem}_test{suffix}")


def _js_test(source: SourceFile) -> str:
    stem = posixpath.basename(source.path).rpartition(".")[0]
    exports = list(dict.fromkeys(_JS_EXPORT_RE.findall(source.content)))
    lines: list[str] = []
    if exports:
        lines.append(f"import {{ {', '.join(exports)} }} from './{stem}'")
    else:
        lines.append(f"import * as subject from './{stem}'")
    lines.extend(["", f"describe('{stem}', () => {{"])
    if exports:
        for name in exports:
            lines.extend(
                [
                    f"  it('exports {name}', () => {{",
                    f"    expect({name}).toBeDefined()",
                    "  })",
                    "",
                ]
            )
        lines.pop()
    else:
        lines.extend(
            [
                "  it('loads the module', () => {",
                "    expect(subject).toBeDefined()",
                "  })",
            ]
        )
    lines.append("})")
    return "\n".join(lines) + "\n"


def _python_module_name(path: str) -> str:
    """Dotted import name for ``path``, or ``""`` when it has none.

    Only the trailing run of identifier segments is kept, so directories
    such as ``my-app`` are treated as outside the package.
    """
    segments = path.rpartition(".")[0].split("/")
    kept: list[str] = []
    for segment in reversed(segments):
        if not segment.isidentifier():
            break
        kept.append(segment)
    return ".".join(reversed(kept))


def _python_test(source: SourceFile) -> str:
    module = _python_module_name(source.path)
    if not module:
        return f"# Tests for {source.path}\n"
    functions = [
        name
        for name in dict.fromkeys(_PY_PUBLIC_DEF_RE.findall(source.content))
        if not name.startswith("test")
    ]
    lines = [f'"""Tests for {module}."""', "", f"import {module}", ""]
    if functions:
        for name in functions:
            lines.extend(
                [
                    "",
                    f"def test_{name}_is_callable():",
                    f"    assert callable({module}.{name})",
                    "",
                ]
            )
    else:
        lines.extend(["", "def test_module_imports():", f"    assert {module} is not None", ""])
    return "\n".join(lines)


def _generic_test(source: SourceFile) -> str:
    return f"// Tests for {source.path}\n"


def generate_test(source: SourceFile, report: AnalysisReport) -> tuple[str, str]:
    """Render ``(path, content)`` of a starter test module for ``source``."""
    extension = file_extension(source.path)
    if extension in {"js", "jsx", "ts", "tsx"}:
        content = _js_test(source)
    elif extension == "py":
        content = _python_test(source)
    else:
        content = _generic_test(source)
    return starter_test_path(source.path), content
