"""Template synthesizer output tests."""

from __future__ import annotations

from qtest.analyzers import analyze_content
from qtest.models import AnalysisRecord, GenerationOptions
from qtest.templating import js_identifier, synthesize


def _render(make_file, name: str, content: str, framework="jest", **kwargs) -> str:
    file = make_file(name, content)
    return synthesize(name.rsplit(".", 1)[0], analyze_content(content), framework, file, **kwargs)


def test_jest_scaffold_for_exported_function(make_file) -> None:
    output = _render(make_file, "math.js", "export function add(a,b) { return a+b; }")

    assert output.startswith("// Generated test for math.js\n")
    assert "import { add } from './math';" in output
    assert "describe('math', () => {" in output
    assert "describe('add', () => {" in output
    assert "test('should be defined', () => {" in output
    assert "expect(add).toBeDefined();" in output
    assert "test('should handle edge cases', () => {" in output
    assert "test('should reject invalid argument types', () => {" in output
    assert "jest.clearAllMocks();" in output
    assert "describe('Complexity Tests (Complexity: 1)', () => {" in output
    assert "should handle complex logic paths" not in output


def test_vitest_imports_its_globals(make_file) -> None:
    output = _render(make_file, "math.ts", "export function add(a, b) { return a + b; }", "vitest")

    assert "import { describe, test, expect, beforeEach, afterEach, vi } from 'vitest';" in output
    assert "vi.restoreAllMocks();" in output
    assert "expect(add).toBeDefined();" in output


def test_mocha_uses_chai_and_it(make_file) -> None:
    output = _render(make_file, "math.js", "function add(a, b) { return a + b; }", "mocha")

    assert "const { expect } = require('chai');" in output
    assert "const { add } = require('./math');" in output
    assert "it('should be defined', () => {" in output
    assert "expect(add).to.not.be.undefined;" in output
    assert "test(" not in output


def test_unknown_framework_renders_jest(make_file) -> None:
    content = "export const sum = (a, b) => a + b;"
    assert _render(make_file, "sum.js", content, "jasmine") == _render(
        make_file, "sum.js", content, "jest"
    )


def test_file_without_functions_checks_default_export(make_file) -> None:
    output = _render(make_file, "user-service.js", "module.exports = {};")

    assert "import userService from './user-service';" in output
    assert "expect(userService).toBeDefined();" in output


def test_react_and_api_blocks(make_file) -> None:
    content = (
        "import React from 'react';\n"
        "export function handler(req, res) { return <div />; }\n"
    )
    output = _render(make_file, "Widget.jsx", content)

    assert "import { render, screen } from '@testing-library/react';" in output
    assert "render(<Widget />);" in output
    assert "test('should handle API requests correctly', () => {" in output
    assert "// Mock: react" in output


def test_relative_imports_and_database_note(make_file) -> None:
    content = "import { db } from '../db';\nexport function find() { return db.query(); }\n"
    output = _render(make_file, "repo.js", content)

    assert "// import from '../db';" in output
    assert "// NOTE: database access detected" in output


def test_async_functions_get_async_placeholder(make_file) -> None:
    output = _render(make_file, "api.js", "export async function fetchUser(id) { return id; }")
    assert "test('should handle async operations', async () => {" in output


def test_complex_code_gets_logic_path_test(make_file) -> None:
    content = "function check(a, b) {\n" + "  if (a && b) { return 1; }\n" * 3 + "}\n"
    output = _render(make_file, "check.js", content)

    assert "Complexity Tests (Complexity: 7)" in output
    assert "test('should handle complex logic paths', () => {" in output


def test_options_toggle_setup_and_edge_cases(make_file) -> None:
    options = GenerationOptions(generate_edge_cases=False, include_setup=False)
    output = _render(make_file, "math.js", "function add(a, b) {}", options=options)

    assert "beforeEach" not in output
    assert "should reject invalid argument types" not in output
    assert "should handle edge cases" in output


def test_render_accepts_bare_analysis(make_file) -> None:
    output = synthesize("empty", AnalysisRecord(), "mocha", make_file("empty.js"))
    assert "const empty = require('./empty');" in output


def test_js_identifier() -> None:
    assert js_identifier("user-service") == "userService"
    assert js_identifier("Button") == "Button"
    assert js_identifier("2fa") == "_2fa"
