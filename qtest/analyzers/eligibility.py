"""Which files get a generated test, and what the test file is called."""

from __future__ import annotations

import re

from ..models import FileRecord, Framework

CONFIG_FILENAMES = frozenset(
    {
        "webpack.config.js",
        "vite.config.js",
        "jest.config.js",
        "package.json",
        "tsconfig.json",
        ".eslintrc.js",
    }
)

_SOURCE_EXTENSION = re.compile(r"\.(js|ts|jsx|tsx)$")

_TEST_SUFFIXES: dict[Framework, str] = {
    Framework.JEST: ".test.js",
    Framework.VITEST: ".test.ts",
    Framework.MOCHA: ".spec.js",
}


def is_eligible(file: FileRecord) -> bool:
    """Return False for existing tests and well-known config files."""
    name = file.name
    if ".test." in name or ".spec." in name:
        return False
    if name in CONFIG_FILENAMES:
        return False
    return True


def base_name(filename: str) -> str:
    """Strip a single trailing .js/.ts/.jsx/.tsx extension."""
    return _SOURCE_EXTENSION.sub("", filename)


def generated_filename(filename: str, framework: "Framework | str | None") -> str:
    """Name of the generated test for ``filename`` under ``framework``."""
    suffix = _TEST_SUFFIXES[Framework.parse(framework)]
    return f"{base_name(filename)}{suffix}"


def is_source_file(filename: str) -> bool:
    return bool(_SOURCE_EXTENSION.search(filename))


__all__ = [
    "CONFIG_FILENAMES",
    "base_name",
    "is_eligible",
    "is_source_file",
    "generated_filename",
]
