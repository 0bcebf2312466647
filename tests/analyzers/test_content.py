"""Tests for the regex content analyzer."""

from __future__ import annotations

import pytest

from qtest.analyzers import analyze_content, calculate_complexity
from qtest.analyzers.content import extract_classes, extract_functions, extract_imports
from qtest.errors import InvalidInputError


def test_exported_function_is_detected() -> None:
    analysis = analyze_content("export function add(a,b) { return a+b; }")

    assert analysis.functions == ["add"]
    assert analysis.has_exports is True
    assert analysis.complexity == 1
    assert analysis.has_async is False
    assert analysis.is_api_route is False


def test_functions_are_deduplicated_across_patterns() -> None:
    content = """
    export async function load(id) { return id; }
    const save = async (item) => item;
    const remove = function (item) { return item; };
    function load(again) {}
    """

    assert extract_functions(content) == ["load", "remove", "save"]


def test_analysis_is_deterministic() -> None:
    content = "import x from 'y';\nclass A {}\nif (a && b) { run(); }\n"
    assert analyze_content(content) == analyze_content(content)


def test_complexity_grows_with_control_flow() -> None:
    base = "function f(a) { return a; }\n"
    first = calculate_complexity(base)
    second = calculate_complexity(base + "if (a) { f(a); }\n")
    third = calculate_complexity(base + "if (a) { f(a); }\nfor (;;) { break; }\n")

    assert first == 1
    assert first < second < third


def test_complexity_counts_each_marker() -> None:
    content = """
    if (a) {} else if (b) {}
    switch (c) { case 1: break; case 2: break; }
    while (d) {}
    try {} catch (e) {}
    const ok = a && b || c;
    """
    # if( x2, else if, switch(, case x2, while(, catch(, && and ||
    assert calculate_complexity(content) == 1 + 2 + 1 + 1 + 2 + 1 + 1 + 2


def test_non_text_input_is_rejected() -> None:
    with pytest.raises(InvalidInputError):
        analyze_content(b"function f() {}")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        analyze_content(None)  # type: ignore[arg-type]


def test_classes_keep_duplicates() -> None:
    content = "class Foo {}\nexport class Bar {}\nclass Foo {}\n"
    assert extract_classes(content) == ["Foo", "Bar", "Foo"]


def test_imports_list_es_modules_before_require() -> None:
    content = """
    const fs = require('fs');
    import React from 'react';
    import { helper } from './helper';
    """

    assert extract_imports(content) == ["react", "./helper", "fs"]


def test_react_component_needs_react_import() -> None:
    with_import = analyze_content("import React from 'react';\nexport default () => <div />;\n")
    mentions_only = analyze_content("// works with React and reactive streams\n")

    assert with_import.is_react_component is True
    assert with_import.has_jsx is True
    assert mentions_only.is_react_component is False


def test_async_requires_async_keyword_form() -> None:
    assert analyze_content("async function go() {}").has_async is True
    assert analyze_content("const go = async () => {};").has_async is True
    assert analyze_content("const asyncValue = 1;").has_async is False


def test_flag_heuristics_accept_false_positives() -> None:
    analysis = analyze_content("const request = require; const resource = 1;")

    assert analysis.is_api_route is True
    assert analysis.has_database is False
    assert analyze_content("await db.users.find();").has_database is True
    assert analyze_content("interface Props { id: number }").has_typescript is True
    assert analyze_content("new Promise(() => {})").has_promises is True


def test_identifiers_use_ascii_word_characters() -> None:
    assert analyze_content("function café() {}").functions == []
    assert analyze_content("function cafe() {}").functions == ["cafe"]
    assert extract_classes("class Über {}") == []
