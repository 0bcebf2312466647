"""Error taxonomy shared by the generation tiers."""

from __future__ import annotations


class QTestError(Exception):
    """Base class for qtest failures."""


class InvalidInputError(QTestError, TypeError):
    """Raised when the analyzer receives something other than decoded text."""


class TransportError(QTestError):
    """The remote generation service could not be reached."""

    def __init__(self, message: str, *, refused: bool = False) -> None:
        super().__init__(message)
        self.refused = refused


class RemoteProtocolError(QTestError):
    """The remote service answered, but not with usable test content."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (status {self.status})"


class AgentExecutionError(QTestError):
    """The coding agent subprocess failed, timed out, or overflowed its buffer."""


class BatchEnumerationError(QTestError):
    """Raised when the list of files to generate for cannot be produced."""


__all__ = [
    "AgentExecutionError",
    "BatchEnumerationError",
    "InvalidInputError",
    "QTestError",
    "RemoteProtocolError",
    "TransportError",
]
