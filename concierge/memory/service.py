import logging
from typing import Literal, Optional, Tuple

from concierge.memory.state import ConversationHistoryState
from concierge.models.messages import ConversationTurn

logger = logging.getLogger(__name__)


class ConversationHistoryService:
    """
    Keeps the ordered turn log for a single conversation on the client side.

    The orchestrator is handed an immutable snapshot and never writes to
    the log; the caller appends the turns of an exchange once it completes.
    """

    def __init__(self, max_turns: Optional[int] = None):
        if max_turns is not None and max_turns <= 0:
            raise ValueError("max_turns must be a positive number or None.")
        if max_turns is not None and max_turns % 2 != 0:
            logger.warning("max_turns should ideally be an even number to keep whole user/agent pairs.")

        self._state: ConversationHistoryState = {"turns": [], "max_turns": max_turns}

    def __len__(self) -> int:
        return len(self._state["turns"])

    def add_turn(self, role: Literal["user", "agent"], content: str) -> ConversationTurn:
        if role not in ("user", "agent"):
            raise ValueError("Role must be either 'user' or 'agent'.")
        turn = ConversationTurn(role=role, content=content)
        self._state["turns"].append(turn)
        return turn

    def get_history(self) -> Tuple[ConversationTurn, ...]:
        """
        Snapshot of the turns to send with the next call, oldest first.

        With `max_turns` set, the window is cut back further so that it
        starts on a user turn.
        """
        turns = self._state["turns"]
        max_turns = self._state["max_turns"]
        if max_turns is not None and len(turns) > max_turns:
            turns = turns[-max_turns:]
            while turns and turns[0].role != "user":
                turns = turns[1:]
        return tuple(turns)

    def clear(self):
        self._state["turns"] = []
        logger.info("Conversation history cleared.")
