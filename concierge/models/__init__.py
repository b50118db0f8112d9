from .messages import (
    AgentTurn,
    CapabilityRequest,
    CapabilityResult,
    CapabilitySuspension,
    ConversationTurn,
    Message,
    UserTurn,
)
from .results import (
    Completed,
    OrchestrateRequest,
    OrchestrateResponse,
    OrchestrationResult,
    PendingInterrupt,
    ResumeRequest,
    Suspended,
)

__all__ = [
    "AgentTurn",
    "CapabilityRequest",
    "CapabilityResult",
    "CapabilitySuspension",
    "ConversationTurn",
    "Message",
    "UserTurn",
    "Completed",
    "OrchestrateRequest",
    "OrchestrateResponse",
    "OrchestrationResult",
    "PendingInterrupt",
    "ResumeRequest",
    "Suspended",
]
