"""Remote AI generation tier."""

from .client import RemoteGenerationClient, RemoteResult

__all__ = ["RemoteGenerationClient", "RemoteResult"]
