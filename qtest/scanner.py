"""Project scanning: walk a directory and load JavaScript/TypeScript sources."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .analyzers import analyze_content, is_source_file
from .config import (
    DEFAULT_MAX_CONTENT_BYTES,
    PROJECT_CONFIG_FILENAME,
    ConfigError,
    load_project_config,
)
from .logging import get_logger
from .models import FileRecord

_EXCLUDED_DIRS = {
    "node_modules",
    ".git",
    "dist",
    "build",
    "coverage",
    ".next",
}

_FRAMEWORK_MODULES: tuple[tuple[str, str], ...] = (
    ("next", "Next.js"),
    ("react", "React"),
    ("vue", "Vue"),
    ("@angular/core", "Angular"),
    ("express", "Express"),
)

logger = get_logger("scanner")


@dataclass
class ExcludeRule:
    """A glob from ``excludePatterns`` in .test-cli.json."""

    pattern: str

    def matches(self, rel_path: str) -> bool:
        if fnmatchcase(rel_path, self.pattern):
            return True
        if self.pattern.startswith("**/") and fnmatchcase(rel_path, self.pattern[3:]):
            return True
        if self.pattern.endswith("/**"):
            prefix = self.pattern[:-3]
            return rel_path == prefix or rel_path.startswith(f"{prefix}/")
        return False


def _load_exclude_rules(root: Path) -> List[ExcludeRule]:
    config_file = root / PROJECT_CONFIG_FILENAME
    if not config_file.exists():
        return []
    try:
        config = load_project_config(config_file)
    except ConfigError as exc:
        logger.warning("Ignoring exclude patterns: %s", exc)
        return []
    return [ExcludeRule(pattern) for pattern in config.exclude_patterns if pattern.strip()]


def _should_exclude(rel_path: str, rules: Sequence[ExcludeRule]) -> bool:
    return any(rule.matches(rel_path) for rule in rules)


class ProjectScanner:
    """Walks a project and produces ``FileRecord`` objects for code files."""

    def __init__(self, max_file_bytes: int = DEFAULT_MAX_CONTENT_BYTES) -> None:
        self.max_file_bytes = max_file_bytes

    def scan(self, path: str) -> List[FileRecord]:
        """Return records for a directory tree, or for a single source file."""
        target = Path(path).expanduser().resolve()
        if not target.exists():
            raise FileNotFoundError(f"Project path not found: {path}")
        if target.is_file():
            return [self.read_file(target)]
        return list(self.iter_files(target))

    def iter_files(self, root: Path) -> Iterator[FileRecord]:
        root = root.resolve()
        if not root.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        rules = _load_exclude_rules(root)
        for dirpath, dirnames, filenames in os.walk(root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)

            for filename in sorted(filenames):
                if not is_source_file(filename):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_exclude(rel_path, rules):
                    logger.debug("Excluded by pattern: %s", rel_path)
                    continue
                path = current_dir / filename
                if path.stat().st_size > self.max_file_bytes:
                    logger.warning(
                        "Skipping %s: larger than %d bytes", rel_path, self.max_file_bytes
                    )
                    continue
                yield self.read_file(path, root=root)

    def read_file(self, path: Path, *, root: Path | None = None) -> FileRecord:
        """Load one source file; ``root`` defaults to the file's directory."""
        if not is_source_file(path.name):
            raise ValueError(
                "File must be a JavaScript/TypeScript file (.js, .ts, .jsx, .tsx)"
            )
        base = root or path.parent
        content = path.read_text(encoding="utf-8", errors="replace")
        return FileRecord(
            name=path.name,
            path=str(path),
            relative_path=path.relative_to(base).as_posix(),
            content=content,
            size=path.stat().st_size,
        )


def detect_project_type(files: Iterable[FileRecord]) -> str:
    """Best-effort label for the project, based on imports and file names."""
    imported: set[str] = set()
    has_typescript = False
    for file in files:
        if file.name.startswith("next.config."):
            imported.add("next")
        if file.name.endswith((".ts", ".tsx")):
            has_typescript = True
        for module in analyze_content(file.content).imports:
            imported.add(module.split("/")[0] if not module.startswith("@") else module)

    for module, label in _FRAMEWORK_MODULES:
        if module in imported:
            return label
    if has_typescript:
        return "TypeScript"
    return "JavaScript"


__all__ = ["ExcludeRule", "ProjectScanner", "detect_project_type"]
