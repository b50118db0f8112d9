from typing import List, Optional, TypedDict

from concierge.models.messages import ConversationTurn


class ConversationHistoryState(TypedDict):
    """
    The client-held log of one conversation. Nothing here lives on the
    server; the whole log is resent with every turn.
    """

    turns: List[ConversationTurn]
    # Most recent turns sent along with each call; None sends everything.
    max_turns: Optional[int]
