"""Regex heuristics that summarise a JavaScript/TypeScript source file.

The patterns are deliberately approximate: they mirror what a quick read of
the file would notice, not what a parser would prove. False positives (for
example ``is_api_route`` firing on any file mentioning ``req`` and ``res``)
are expected and pinned by the test suite.
"""

from __future__ import annotations

import re
from typing import List

from ..errors import InvalidInputError
from ..models import AnalysisRecord

# re.ASCII keeps \w, \s and \b to the ASCII classes JavaScript regexes use.
_FUNCTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"function\s+(\w+)\s*\(", re.ASCII),
    re.compile(r"(\w+)\s*=\s*(?:async\s+)?function\s*\(", re.ASCII),
    re.compile(r"(\w+)\s*=\s*(?:async\s+)?\([^\)]*\)\s*=>", re.ASCII),
    re.compile(r"export\s+(?:async\s+)?function\s+(\w+)\s*\(", re.ASCII),
)

_CLASS_PATTERN = re.compile(r"(?:class\s+(\w+)|export\s+class\s+(\w+))", re.ASCII)

_IMPORT_PATTERN = re.compile(r"import\s+.*?\s+from\s+['\"]([^'\"]+)['\"]", re.ASCII)
_REQUIRE_PATTERN = re.compile(r"require\(['\"]([^'\"]+)['\"]\)", re.ASCII)

_ASYNC_PATTERN = re.compile(r"\basync\s+function\b|\basync\s*\(", re.ASCII)
_REACT_IMPORT_PATTERN = re.compile(r"import\s+React\s+from\s+['\"]react['\"]", re.ASCII)
_REACT_REQUIRE_PATTERN = re.compile(r"require\(['\"]react['\"]\)", re.ASCII)
_TAG_PATTERN = re.compile(r"<([A-Za-z][A-Za-z0-9]*)\b[^>]*>", re.ASCII)

_COMPLEXITY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"if\s*\(", re.ASCII),
    re.compile(r"else\s+if", re.ASCII),
    re.compile(r"switch\s*\(", re.ASCII),
    re.compile(r"case\s+", re.ASCII),
    re.compile(r"for\s*\(", re.ASCII),
    re.compile(r"while\s*\(", re.ASCII),
    re.compile(r"catch\s*\(", re.ASCII),
    re.compile(r"&&|\|\|", re.ASCII),
)

_DATABASE_MARKERS = ("db.", "mongoose", "prisma")


def analyze_content(content: str) -> AnalysisRecord:
    """Return the structural summary of ``content``.

    Raises:
        InvalidInputError: ``content`` is not a ``str``.
    """
    if not isinstance(content, str):
        raise InvalidInputError(
            f"analyze_content expects decoded text, got {type(content).__name__}"
        )

    return AnalysisRecord(
        functions=extract_functions(content),
        classes=extract_classes(content),
        imports=extract_imports(content),
        has_async=bool(_ASYNC_PATTERN.search(content)),
        has_promises="Promise" in content,
        has_exports="export" in content or "module.exports" in content,
        is_react_component=bool(
            _REACT_IMPORT_PATTERN.search(content) or _REACT_REQUIRE_PATTERN.search(content)
        ),
        is_api_route="req" in content and "res" in content,
        has_database=any(marker in content for marker in _DATABASE_MARKERS),
        has_typescript="interface" in content or "type " in content,
        has_jsx="jsx" in content or bool(_TAG_PATTERN.search(content)),
        complexity=calculate_complexity(content),
    )


def extract_functions(content: str) -> List[str]:
    """Function names in first-seen order, pattern by pattern, without duplicates."""
    matches: List[str] = []
    for pattern in _FUNCTION_PATTERNS:
        matches.extend(match.group(1) for match in pattern.finditer(content))
    return [name for name in dict.fromkeys(matches) if name]


def extract_classes(content: str) -> List[str]:
    return [
        match.group(1) or match.group(2) for match in _CLASS_PATTERN.finditer(content)
    ]


def extract_imports(content: str) -> List[str]:
    """ES module sources first, then CommonJS ``require`` targets."""
    imports = [match.group(1) for match in _IMPORT_PATTERN.finditer(content)]
    imports.extend(match.group(1) for match in _REQUIRE_PATTERN.finditer(content))
    return imports


def calculate_complexity(content: str) -> int:
    """One plus every control-flow keyword and boolean operator occurrence."""
    complexity = 1
    for pattern in _COMPLEXITY_PATTERNS:
        complexity += len(pattern.findall(content))
    return complexity


__all__ = [
    "analyze_content",
    "calculate_complexity",
    "extract_classes",
    "extract_functions",
    "extract_imports",
]
