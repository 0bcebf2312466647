"""Jinja-backed test scaffold rendering."""

from __future__ import annotations

from .synthesizer import TemplateSynthesizer, js_identifier, synthesize

__all__ = ["TemplateSynthesizer", "js_identifier", "synthesize"]
