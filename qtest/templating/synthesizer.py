"""Renders framework-specific test scaffolds from an analysis record."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models import AnalysisRecord, FileRecord, Framework, GenerationOptions

TEMPLATES_DIR = Path(__file__).with_name("templates")

_NON_IDENTIFIER = re.compile(r"[^A-Za-z0-9_$]+(.)?")


@dataclass(frozen=True)
class Dialect:
    """Per-framework vocabulary consumed by the shared base template."""

    template: str
    test_fn: str
    defined: str


DIALECTS: dict[Framework, Dialect] = {
    Framework.JEST: Dialect(
        template="jest.j2",
        test_fn="test",
        defined="expect({name}).toBeDefined();",
    ),
    Framework.VITEST: Dialect(
        template="vitest.j2",
        test_fn="test",
        defined="expect({name}).toBeDefined();",
    ),
    Framework.MOCHA: Dialect(
        template="mocha.j2",
        test_fn="it",
        defined="expect({name}).to.not.be.undefined;",
    ),
}


class TemplateSynthesizer:
    """Deterministic local test generator (the last-resort generation tier)."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(
        self,
        base_name: str,
        analysis: AnalysisRecord,
        framework: "Framework | str | None",
        file: FileRecord,
        *,
        options: GenerationOptions | None = None,
    ) -> str:
        dialect = DIALECTS[Framework.parse(framework)]
        template = self._env.get_template(dialect.template)
        return template.render(
            file_name=file.name,
            base_name=base_name,
            identifier=js_identifier(base_name),
            analysis=analysis,
            options=options or GenerationOptions(),
            dialect=dialect,
        )


def js_identifier(name: str) -> str:
    """Turn a file base name such as ``user-service`` into ``userService``."""
    identifier = _NON_IDENTIFIER.sub(lambda match: (match.group(1) or "").upper(), name)
    if not identifier:
        return "subject"
    if identifier[0].isdigit():
        return f"_{identifier}"
    return identifier


@lru_cache(maxsize=1)
def _default_synthesizer() -> TemplateSynthesizer:
    return TemplateSynthesizer()


def synthesize(
    base_name: str,
    analysis: AnalysisRecord,
    framework: "Framework | str | None",
    file: FileRecord,
    *,
    options: GenerationOptions | None = None,
) -> str:
    """Render the test scaffold for ``file``; unknown frameworks render Jest."""
    return _default_synthesizer().render(
        base_name, analysis, framework, file, options=options
    )


__all__ = ["DIALECTS", "Dialect", "TemplateSynthesizer", "js_identifier", "synthesize"]
