"""qtest: test scaffold generation for JavaScript/TypeScript projects."""

__version__ = "1.0.0"

__all__ = ["__version__"]
