"""Per-file analysis: content heuristics and test eligibility."""

from __future__ import annotations

from .content import analyze_content, calculate_complexity
from .eligibility import base_name, generated_filename, is_eligible, is_source_file

__all__ = [
    "analyze_content",
    "base_name",
    "calculate_complexity",
    "generated_filename",
    "is_eligible",
    "is_source_file",
]
