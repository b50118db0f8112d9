import logging
from typing import Any, Dict, Optional

from concierge.exceptions import OrchestrationError, UnmatchedInterruptError
from concierge.memory import ConversationHistoryService
from concierge.models.results import Suspended
from concierge.workflows import InterruptController, MainOrchestrator

logger = logging.getLogger(__name__)

APOLOGY = "Sorry, something went wrong. Please try again."
DEFAULT_CLARIFICATION = "I need a little more information to continue. Could you tell me more?"


class ConciergeSession:
    """
    One user's conversation: the turn log, the pending interrupt and the
    orchestrator they are sent to. This is everything a chat front end needs
    to hold between messages.
    """

    def __init__(self, orchestrator: MainOrchestrator, max_history_turns: Optional[int] = None):
        self.history = ConversationHistoryService(max_turns=max_history_turns)
        self.interrupts = InterruptController(orchestrator)

    @property
    def awaiting_response(self) -> bool:
        return self.interrupts.pending is not None

    def reset(self):
        self.history.clear()
        self.interrupts.reset()

    def _submit(self, utterance, history):
        resuming = self.awaiting_response
        try:
            return self.interrupts.submit(utterance, history)
        except UnmatchedInterruptError as e:
            if not resuming:
                raise
            if e.already_run:
                logger.warning(f"Not retrying ({e}): {list(e.already_run)} already ran in this turn.")
                raise
            # The controller is idle again at this point.
            logger.warning(f"Discarding stale interrupt ({e}); sending the message as a new request.")
            return self.interrupts.submit(utterance, history)

    def send(self, utterance: str) -> Dict[str, Any]:
        """
        Sends one user message and returns
        `{"content", "is_clarification", "error"}` for display.

        The history snapshot is taken before the call, so the message being
        sent never appears in its own history. On failure the log is left
        as it was and a generic apology is returned.
        """
        utterance = utterance.strip()
        if not utterance:
            raise ValueError("Cannot send an empty message.")

        history = self.history.get_history()
        try:
            result = self._submit(utterance, history)
        except OrchestrationError as e:
            logger.error(f"Concierge turn failed: {e}", exc_info=True)
            return {"content": None, "is_clarification": False, "error": APOLOGY}

        if isinstance(result, Suspended):
            content = result.interrupt.metadata.get("question") or DEFAULT_CLARIFICATION
            is_clarification = True
        else:
            content = result.text
            is_clarification = False

        self.history.add_turn("user", utterance)
        self.history.add_turn("agent", content)
        return {"content": content, "is_clarification": is_clarification, "error": None}
