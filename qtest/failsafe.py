"""Local template generation used when an AI tier cannot deliver a test."""

from __future__ import annotations

from .analyzers import analyze_content, base_name
from .models import FileRecord, Framework, GenerationOptions
from .templating import synthesize


def generate_local_test(
    file: FileRecord,
    framework: "Framework | str | None",
    *,
    options: GenerationOptions | None = None,
) -> str:
    """Analyze ``file`` and render its scaffold without any network or subprocess."""
    analysis = analyze_content(file.content)
    return synthesize(base_name(file.name), analysis, framework, file, options=options)


def placeholder_file(name: str, content: str | None, path: str | None = None) -> FileRecord:
    """Minimal stand-in record for sources that only exist inside a request."""
    text = content if isinstance(content, str) else ""
    return FileRecord(
        name=name or "source.js",
        path=path or name or "source.js",
        relative_path=path or name or "source.js",
        content=text,
        size=len(text.encode("utf-8")),
    )


def format_reason(reason: str | None) -> str | None:
    """Collapse whitespace and clip long failure messages for log lines."""
    if not reason:
        return None
    cleaned = " ".join(reason.strip().split())
    if not cleaned:
        return None
    return cleaned[:200] + ("…" if len(cleaned) > 200 else "")


__all__ = ["format_reason", "generate_local_test", "placeholder_file"]
