"""Core data models shared across qtest components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Framework(str, Enum):
    """Test frameworks that qtest can scaffold for."""

    JEST = "jest"
    VITEST = "vitest"
    MOCHA = "mocha"

    @classmethod
    def parse(cls, value: "str | Framework | None") -> "Framework":
        """Normalise user input; unknown or missing values mean Jest."""
        if isinstance(value, Framework):
            return value
        if value is None:
            return cls.JEST
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.JEST

    @classmethod
    def is_known(cls, value: str | None) -> bool:
        return value is not None and str(value).strip().lower() in {item.value for item in cls}


@dataclass(frozen=True)
class FileRecord:
    """A scanned source file; read-only once the scanner creates it."""

    name: str
    path: str
    relative_path: str
    content: str
    size: int

    @property
    def request_path(self) -> str:
        """Path forwarded to generation services, relative when known."""
        return self.relative_path or self.path


@dataclass(frozen=True)
class AnalysisRecord:
    """Structural summary derived from a file's text."""

    functions: List[str] = field(default_factory=list)
    classes: List[str] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    has_async: bool = False
    has_promises: bool = False
    has_exports: bool = False
    is_react_component: bool = False
    is_api_route: bool = False
    has_database: bool = False
    has_typescript: bool = False
    has_jsx: bool = False
    complexity: int = 1

    def features(self) -> List[str]:
        """Short labels for the notable flags, used in summaries and prompts."""
        labels: List[str] = []
        if self.has_async:
            labels.append("async")
        if self.is_react_component:
            labels.append("React")
        if self.is_api_route:
            labels.append("API")
        return labels


@dataclass(frozen=True)
class GenerationOptions:
    """Knobs forwarded to generators; they change wording, never control flow."""

    generate_edge_cases: bool = True
    include_setup: bool = True

    def to_payload(self) -> Dict[str, bool]:
        return {
            "generateEdgeCases": self.generate_edge_cases,
            "includeSetup": self.include_setup,
        }

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "GenerationOptions":
        data = payload or {}
        return cls(
            generate_edge_cases=bool(data.get("generateEdgeCases", True)),
            include_setup=bool(data.get("includeSetup", True)),
        )


@dataclass(frozen=True)
class GeneratedTest:
    """A rendered test file ready to be written by the CLI."""

    filename: str
    content: str
    source_file: str
