from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

from concierge.models.messages import CapabilityResult, CapabilitySuspension, ConversationTurn, Message
from concierge.models.results import OrchestrationResult, PendingInterrupt, ResumeRequest, Suspended

if TYPE_CHECKING:
    from concierge.workflows.orchestrator import MainOrchestrator

logger = logging.getLogger(__name__)


def unresolved_suspensions(partial_history: Sequence[Message]) -> List[CapabilitySuspension]:
    """Suspended calls in `partial_history` that have no result yet, oldest first."""
    answered = {m.request_id for m in partial_history if isinstance(m, CapabilityResult)}
    return [
        m
        for m in partial_history
        if isinstance(m, CapabilitySuspension) and m.request_id not in answered
    ]


def find_resumable_suspension(
    partial_history: Sequence[Message], capability_name: str
) -> Optional[CapabilitySuspension]:
    """
    Scans `partial_history` from the newest entry backward for an unresolved
    suspension of `capability_name`. The most recent one wins; older
    suspensions of the same capability are stale and never resumed.
    """
    for message in reversed(unresolved_suspensions(partial_history)):
        if message.name == capability_name:
            return message
    return None


class InterruptController:
    """
    Client-side suspend/resume state for one conversation.

    Idle until a turn comes back Suspended; then the next utterance is sent as
    the answer to that interrupt instead of as a new request. At most one
    interrupt is pending, a new suspension replaces the old one, and the
    pending interrupt is dropped before the resume call so that a failed
    resume cannot hijack a later message.
    """

    def __init__(self, orchestrator: MainOrchestrator):
        self.orchestrator = orchestrator
        self.pending: Optional[PendingInterrupt] = None

    @property
    def state(self) -> str:
        return "awaiting_response" if self.pending is not None else "idle"

    def reset(self):
        self.pending = None

    def submit(self, utterance: str, history: Sequence[ConversationTurn]) -> OrchestrationResult:
        pending, self.pending = self.pending, None

        if pending is None:
            result = self.orchestrator.run(utterance, history)
        else:
            logger.info(f"Routing message as the answer to the '{pending.capability_name}' interrupt.")
            result = self.orchestrator.run(
                utterance,
                history,
                resume=ResumeRequest(capability_name=pending.capability_name, user_response=utterance),
                partial_history=pending.partial_history,
            )

        if isinstance(result, Suspended):
            self.pending = result.interrupt
        return result
