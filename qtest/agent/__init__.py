"""Agent-backed generation tier used by the HTTP service."""

from .runner import AgentOutput, AgentRunner
from .service import AgentGenerationService, AgentRequest, AgentResult
from .workspace import scratch_workspace

__all__ = [
    "AgentGenerationService",
    "AgentOutput",
    "AgentRequest",
    "AgentResult",
    "AgentRunner",
    "scratch_workspace",
]
