"""Tests for the agent-backed generation service."""

from __future__ import annotations

import json
import sys
from pathlib import Path

from qtest.agent import AgentGenerationService, AgentOutput, AgentRequest, AgentRunner
from qtest.agent.service import FALLBACK_METHOD, extract_test_from_output
from qtest.config import AgentConfig
from qtest.errors import AgentExecutionError
from qtest.models import GenerationOptions


class _FakeRunner:
    def __init__(self, behaviour) -> None:
        self.behaviour = behaviour
        self.workspaces: list[Path] = []
        self.prompts: list[str] = []

    def run(self, prompt: str, *, cwd: Path) -> AgentOutput:
        self.workspaces.append(cwd)
        self.prompts.append(prompt)
        return self.behaviour(cwd)

    def probe(self) -> dict[str, object]:
        return {"available": True, "version": "1.2.3"}


def _service(tmp_path: Path, behaviour) -> tuple[AgentGenerationService, _FakeRunner]:
    runner = _FakeRunner(behaviour)
    config = AgentConfig(workspace_root=tmp_path / "scratch")
    return AgentGenerationService(config, runner=runner), runner  # type: ignore[arg-type]


def _request(**overrides) -> AgentRequest:
    values = {"file_name": "math.js", "content": "export function add(a, b) { return a + b; }"}
    values.update(overrides)
    return AgentRequest(**values)


def test_agent_written_file_is_returned(tmp_path: Path) -> None:
    def behaviour(cwd: Path) -> AgentOutput:
        assert (cwd / "math.js").read_text(encoding="utf-8").startswith("export function add")
        (cwd / "math.test.js").write_text("describe('add', () => {});\n", encoding="utf-8")
        return AgentOutput(stdout="", stderr="")

    service, runner = _service(tmp_path, behaviour)
    result = service.generate(_request())

    assert result.content == "describe('add', () => {});\n"
    assert result.method == "cline"
    assert result.source_file == "math.js"
    assert not runner.workspaces[0].exists()


def test_failure_falls_back_and_removes_workspace(tmp_path: Path) -> None:
    def behaviour(cwd: Path) -> AgentOutput:
        raise AgentExecutionError("Agent timed out after 120 seconds")

    service, runner = _service(tmp_path, behaviour)
    result = service.generate(_request(framework="mocha"))

    assert result.method == FALLBACK_METHOD
    assert "const { add } = require('./math');" in result.content
    assert not runner.workspaces[0].exists()
    assert list((tmp_path / "scratch").iterdir()) == []


def test_stdout_code_block_is_recovered(tmp_path: Path) -> None:
    message = "Here you go:\n```javascript\ndescribe('add', () => { test('works', () => {}); });\n```\n"
    stdout = "\n".join(
        [
            json.dumps({"type": "say", "text": "Reading math.js"}),
            json.dumps({"type": "completion_result", "text": message}),
        ]
    )

    service, _ = _service(tmp_path, lambda cwd: AgentOutput(stdout=stdout, stderr=""))
    result = service.generate(_request())

    assert result.content == "describe('add', () => { test('works', () => {}); });\n"
    assert result.method == "cline"


def test_unrecognised_output_uses_template(tmp_path: Path) -> None:
    service, _ = _service(tmp_path, lambda cwd: AgentOutput(stdout="All done!", stderr=""))
    result = service.generate(_request(options=GenerationOptions(include_setup=False)))

    assert result.method == FALLBACK_METHOD
    assert "describe('add', () => {" in result.content
    assert "beforeEach" not in result.content


def test_prompt_mentions_analysis(tmp_path: Path) -> None:
    service, runner = _service(tmp_path, lambda cwd: AgentOutput(stdout="", stderr=""))
    service.generate(_request())

    prompt = runner.prompts[0]
    assert "Functions: add" in prompt
    assert "`math.test.js`" in prompt


def test_file_name_cannot_escape_workspace(tmp_path: Path) -> None:
    seen: list[str] = []

    def behaviour(cwd: Path) -> AgentOutput:
        seen.extend(path.name for path in cwd.iterdir())
        return AgentOutput(stdout="", stderr="")

    service, _ = _service(tmp_path, behaviour)
    result = service.generate(_request(file_name="../../etc/math.js"))

    assert seen == ["math.js"]
    assert result.source_file == "math.js"


def test_health_reports_probe(tmp_path: Path) -> None:
    service, _ = _service(tmp_path, lambda cwd: AgentOutput(stdout="", stderr=""))
    assert service.health() == {
        "status": "healthy",
        "agent": "cline",
        "available": True,
        "version": "1.2.3",
    }


def test_extract_prefers_last_test_block() -> None:
    stdout = (
        "```js\nconst helper = 1;\n```\n"
        "```ts\ntest('first', () => {});\n```\n"
        "```ts\nit('second', () => {});\n```\n"
    )
    assert extract_test_from_output(stdout) == "it('second', () => {});\n"
    assert extract_test_from_output("no code here") is None


def test_unexecutable_agent_falls_back(tmp_path: Path) -> None:
    agent = tmp_path / "cline"
    agent.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    agent.chmod(0o644)
    config = AgentConfig(executable=str(agent), workspace_root=tmp_path / "scratch")

    result = AgentGenerationService(config).generate(_request())

    assert result.method == FALLBACK_METHOD
    assert "describe('add', () => {" in result.content
    assert list((tmp_path / "scratch").iterdir()) == []


def test_undecodable_agent_output_falls_back(tmp_path: Path) -> None:
    runner = AgentRunner(
        executable=sys.executable,
        arguments=["-c", "import sys; sys.stdout.buffer.write(b'\\xff\\xfe\\x00 done')"],
        timeout=30,
    )
    config = AgentConfig(workspace_root=tmp_path / "scratch")

    result = AgentGenerationService(config, runner=runner).generate(_request())

    assert result.method == FALLBACK_METHOD
    assert "expect(add).toBeDefined();" in result.content


def test_staged_test_named_source_is_not_returned(tmp_path: Path) -> None:
    source = "export function widget() { return 1; }"
    service, _ = _service(tmp_path, lambda cwd: AgentOutput(stdout="", stderr=""))

    result = service.generate(_request(file_name="widget.test.js", content=source))

    assert result.method == FALLBACK_METHOD
    assert result.content != source
    assert "describe('widget', () => {" in result.content
