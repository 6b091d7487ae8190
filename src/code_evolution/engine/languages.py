"""Lookup tables and path predicates shared by the engine stages.

Everything here is data plus trivial string predicates: the extension to
language table, framework markers, which paths count as documentation or
configuration, and the per-language checklist of expected project files.
"""

from __future__ import annotations

from dataclasses import dataclass

# Documentation and data formats are deliberately absent: they never count
# toward the main language.
EXTENSION_LANGUAGES: dict[str, str] = {
    "js": "JavaScript",
    "jsx": "JavaScript",
    "mjs": "JavaScript",
    "cjs": "JavaScript",
    "ts": "TypeScript",
    "tsx": "TypeScript",
    "py": "Python",
    "java": "Java",
    "cpp": "C++",
    "c": "C",
    "cs": "C#",
    "php": "PHP",
    "rb": "Ruby",
    "go": "Go",
    "rs": "Rust",
    "swift": "Swift",
    "kt": "Kotlin",
    "scala": "Scala",
    "clj": "Clojure",
    "vue": "Vue",
    "svelte": "Svelte",
    "html": "HTML",
    "css": "CSS",
    "scss": "SCSS",
    "less": "Less",
    "sql": "SQL",
    "sh": "Shell",
    "bash": "Bash",
    "ps1": "PowerShell",
}

# Extensions the content transformer knows how to rewrite.
FIXABLE_EXTENSIONS = frozenset({"js", "jsx", "ts", "tsx"})

# Extensions treated as source code when picking refactor or test targets.
CODE_EXTENSIONS = frozenset({"js", "jsx", "ts", "tsx", "py", "java", "cpp", "c"})

TYPESCRIPT_EXTENSIONS = frozenset({"ts", "tsx"})
COMPONENT_EXTENSIONS = frozenset({"tsx", "jsx"})

DOCUMENTATION_MARKERS: tuple[str, ...] = ("readme", ".md", "license", "changelog")

CONFIG_MARKERS: tuple[str, ...] = (
    "package.json",
    "package-lock.json",
    "tsconfig",
    "next.config",
    "tailwind.config",
    "postcss.config",
    "vite.config",
    "webpack.config",
    "jest.config",
    "eslint",
    ".gitignore",
)

TEST_PATH_MARKERS: tuple[str, ...] = ("test", "spec")

# (framework name, lower-cased substrings any of which marks it present)
FRAMEWORK_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("React", ("from 'react'", 'from "react"', "require('react')", "react-dom")),
    ("Next.js", ("from 'next", 'from "next', "next/router", "next/link")),
    ("Vue", ("from 'vue'", 'from "vue"', "createapp(")),
    ("Angular", ("@angular/",)),
    ("Svelte", ("from 'svelte", 'from "svelte')),
    ("Express", ("require('express')", "from 'express'", 'from "express"')),
    ("Django", ("django",)),
    ("Flask", ("flask",)),
    ("FastAPI", ("fastapi",)),
    ("Spring", ("springframework",)),
)


def file_extension(path: str) -> str:
    """Return the lower-cased text after the final ``.`` of ``path``.

    Dots inside directory names are ignored; a dotfile such as
    ``.gitignore`` yields ``gitignore``.
    """
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def language_for_path(path: str) -> str:
    """Language name for ``path``, or ``""`` when the extension is unknown."""
    return EXTENSION_LANGUAGES.get(file_extension(path), "")


def is_documentation_path(path: str) -> bool:
    lowered = path.lower()
    return any(marker in lowered for marker in DOCUMENTATION_MARKERS)


def is_config_path(path: str) -> bool:
    lowered = path.lower()
    return any(marker in lowered for marker in CONFIG_MARKERS)


def is_test_path(path: str) -> bool:
    lowered = path.lower()
    return any(marker in lowered for marker in TEST_PATH_MARKERS)


def is_fixable_code_file(path: str) -> bool:
    """True for JavaScript-family sources that are not docs or config."""
    return (
        file_extension(path) in FIXABLE_EXTENSIONS
        and not is_documentation_path(path)
        and not is_config_path(path)
    )


def is_code_file(path: str) -> bool:
    """True for any recognised source file that is not docs or config."""
    return (
        file_extension(path) in CODE_EXTENSIONS
        and not is_documentation_path(path)
        and not is_config_path(path)
    )


# ---------------------------------------------------------------------------
# Expected project files
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExpectedFile:
    """A project file a language's ecosystem expects to find.

    Attributes:
        filename: Name proposed when the file is missing.
        markers: Lower-cased substrings; any path containing one satisfies it.
    """

    filename: str
    markers: tuple[str, ...]


_GITIGNORE = ExpectedFile(".gitignore", (".gitignore",))
_README = ExpectedFile("README.md", ("readme",))
_PACKAGE_JSON = ExpectedFile("package.json", ("package.json",))

EXPECTED_FILES: dict[str, tuple[ExpectedFile, ...]] = {
    "JavaScript": (_PACKAGE_JSON, _GITIGNORE),
    "TypeScript": (
        _PACKAGE_JSON,
        _GITIGNORE,
        ExpectedFile("tsconfig.json", ("tsconfig",)),
    ),
    "Python": (
        ExpectedFile(
            "requirements.txt",
            ("requirements", "pyproject.toml", "setup.py", "pipfile"),
        ),
        _GITIGNORE,
    ),
    "Java": (ExpectedFile("pom.xml", ("pom.xml", "build.gradle")), _GITIGNORE),
    "Go": (ExpectedFile("go.mod", ("go.mod",)), _GITIGNORE),
    "Rust": (ExpectedFile("Cargo.toml", ("cargo.toml",)), _GITIGNORE),
}

# Checked for every detected main language, after the language's own list.
UNIVERSAL_EXPECTED_FILES: tuple[ExpectedFile, ...] = (_README,)


def expected_files_for(language: str) -> tuple[ExpectedFile, ...]:
    if not language:
        return ()
    return EXPECTED_FILES.get(language, ()) + UNIVERSAL_EXPECTED_FILES
