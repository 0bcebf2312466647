"""Natural-language task prompt for the coding agent."""

from __future__ import annotations

from typing import List, Sequence

from ..models import AnalysisRecord, Framework, GenerationOptions

_FRAMEWORK_TITLES = {
    Framework.JEST: "Jest",
    Framework.VITEST: "Vitest",
    Framework.MOCHA: "Mocha (with Chai assertions)",
}


def build_agent_prompt(
    file_name: str,
    analysis: AnalysisRecord,
    framework: "Framework | str",
    options: GenerationOptions,
    *,
    output_filename: str,
) -> str:
    """Describe the test-writing task, embedding the analysis highlights."""
    target = Framework.parse(framework)
    title = _FRAMEWORK_TITLES[target]

    lines = [
        f"Write a comprehensive {title} test file for `{file_name}` in the current directory.",
        f"Save the tests as `{output_filename}` in the same directory.",
        "",
        "Static analysis of the source file:",
        f"- Functions: {_join(analysis.functions)}",
        f"- Classes: {_join(analysis.classes)}",
        f"- Imports: {_join(analysis.imports)}",
        f"- Uses async/await: {_yes_no(analysis.has_async)}",
        f"- Uses Promises: {_yes_no(analysis.has_promises)}",
        f"- React component: {_yes_no(analysis.is_react_component)}",
        f"- API route handler: {_yes_no(analysis.is_api_route)}",
        f"- Complexity score: {analysis.complexity}",
        "",
        "Requirements:",
        f"- Use {title} conventions and import the code under test from `./{file_name}`.",
        "- Cover every detected function and class with at least one meaningful assertion.",
        "- Mock external modules, network calls and database access.",
    ]
    if options.generate_edge_cases:
        lines.append("- Include edge cases: null, undefined, empty values, boundaries and invalid types.")
    if options.include_setup:
        lines.append("- Add beforeEach/afterEach setup and teardown where state is shared.")
    if analysis.has_async or analysis.has_promises:
        lines.append("- Test both resolved and rejected paths of asynchronous code.")
    if analysis.is_react_component:
        lines.append("- Render components with @testing-library/react and assert on visible output.")
    if analysis.complexity > 5:
        lines.append("- Exercise each branch of the conditional logic.")
    lines.extend(
        [
            "",
            "Do not modify the source file. Also print the complete test file in a single fenced code block.",
        ]
    )
    return "\n".join(lines)


def _join(items: Sequence[str], limit: int = 12) -> str:
    if not items:
        return "(none detected)"
    selected: List[str] = list(items[:limit])
    extra = len(items) - len(selected)
    suffix = f" (+{extra} more)" if extra > 0 else ""
    return ", ".join(selected) + suffix


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


__all__ = ["build_agent_prompt"]
