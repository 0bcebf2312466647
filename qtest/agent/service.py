"""Agent-backed generation with a guaranteed template fallback."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

from ..analyzers import analyze_content, generated_filename
from ..config import AgentConfig
from ..errors import AgentExecutionError
from ..failsafe import format_reason, generate_local_test, placeholder_file
from ..logging import get_logger
from ..models import Framework, GenerationOptions
from .prompt import build_agent_prompt
from .runner import AgentRunner
from .workspace import scratch_workspace

FALLBACK_METHOD = "template-fallback"

_TEST_FILE = re.compile(r"\.(?:test|spec)\.[jt]sx?$")
_FENCED_BLOCK = re.compile(
    r"```(?:js|javascript|ts|typescript|jsx|tsx)?[ \t]*\n(.*?)```", re.DOTALL
)
_TEST_MARKER = re.compile(r"\b(?:describe|test|it)\s*\(")

logger = get_logger("agent")


@dataclass
class AgentRequest:
    """One file to generate tests for, as received by the service."""

    file_name: str
    content: str
    path: Optional[str] = None
    framework: str = Framework.JEST.value
    options: GenerationOptions = field(default_factory=GenerationOptions)


@dataclass
class AgentResult:
    content: str
    method: str
    source_file: str


class AgentGenerationService:
    """Stages the file in a scratch workspace, runs the agent, recovers the test."""

    def __init__(
        self,
        config: AgentConfig | None = None,
        *,
        runner: AgentRunner | None = None,
    ) -> None:
        self.config = config or AgentConfig()
        self.runner = runner or AgentRunner.from_config(self.config)

    def generate(self, request: AgentRequest) -> AgentResult:
        """Always returns test content, from the agent or from templates."""
        framework = Framework.parse(request.framework)
        source = placeholder_file(
            _safe_name(request.file_name), request.content, request.path or request.file_name
        )
        analysis = analyze_content(source.content)
        output_name = generated_filename(source.name, framework)

        content: Optional[str] = None
        with scratch_workspace(self.config.workspace_root) as workspace:
            (workspace / source.name).write_text(source.content, encoding="utf-8")
            prompt = build_agent_prompt(
                source.name,
                analysis,
                framework,
                request.options,
                output_filename=output_name,
            )
            try:
                output = self.runner.run(prompt, cwd=workspace)
            except AgentExecutionError as exc:
                logger.warning(
                    "%s failed for %s, using template fallback: %s",
                    self.config.name,
                    source.name,
                    format_reason(str(exc)),
                )
            else:
                content = recover_test_content(
                    workspace, output_name, output.stdout, source_name=source.name
                )
                if content is None:
                    logger.warning(
                        "%s produced no recognizable test for %s, using template fallback",
                        self.config.name,
                        source.name,
                    )

        if content:
            logger.info("Test generated via %s for %s", self.config.name, source.name)
            return AgentResult(content=content, method=self.config.name, source_file=source.name)

        fallback = generate_local_test(source, framework, options=request.options)
        return AgentResult(content=fallback, method=FALLBACK_METHOD, source_file=source.name)

    def health(self) -> dict[str, object]:
        probe = self.runner.probe()
        available = bool(probe.get("available"))
        return {
            "status": "healthy" if available else "unavailable",
            "agent": self.config.name,
            **probe,
        }


def recover_test_content(
    workspace: Path,
    expected_name: str,
    stdout: str,
    *,
    source_name: Optional[str] = None,
) -> Optional[str]:
    """Prefer the file the agent wrote; otherwise parse a code block from stdout.

    The staged source (``source_name``) never counts as agent output, even when
    it is itself named like a test.
    """
    source = workspace / source_name if source_name else None
    expected = workspace / expected_name
    candidates = [expected] if expected.is_file() and expected != source else []
    candidates.extend(
        path
        for path in sorted(workspace.rglob("*"))
        if path.is_file()
        and path not in (expected, source)
        and _TEST_FILE.search(path.name)
    )
    for candidate in candidates:
        text = candidate.read_text(encoding="utf-8", errors="replace")
        if text.strip():
            return text
    return extract_test_from_output(stdout)


def extract_test_from_output(stdout: str) -> Optional[str]:
    """Find the last fenced code block that looks like a test suite."""
    found: Optional[str] = None
    for text in _output_texts(stdout):
        for match in _FENCED_BLOCK.finditer(text):
            block = match.group(1)
            if _TEST_MARKER.search(block):
                found = block
    if found is None:
        return None
    return found.strip() + "\n"


def _output_texts(stdout: str) -> Iterator[str]:
    """Yield the string fields of a JSON-lines stream, or the raw text."""
    parsed_any = False
    for line in stdout.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            continue
        parsed_any = True
        yield from _strings(event)
    if not parsed_any:
        yield stdout


def _strings(value: object) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        return [text for item in value.values() for text in _strings(item)]
    if isinstance(value, list):
        return [text for item in value for text in _strings(item)]
    return []


def _safe_name(name: str) -> str:
    base = Path(name.replace("\\", "/")).name
    if base in {"", ".", ".."}:
        return "source.js"
    return base


__all__ = [
    "AgentGenerationService",
    "AgentRequest",
    "AgentResult",
    "FALLBACK_METHOD",
    "extract_test_from_output",
    "recover_test_content",
]
