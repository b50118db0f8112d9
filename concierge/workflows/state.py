from typing import TypedDict, List, Optional, Set

from concierge.llm.adapter import AdapterDecision
from concierge.models.messages import ConversationTurn, Message
from concierge.models.results import Completed, PendingInterrupt, ResumeRequest, Suspended


class OrchestratorState(TypedDict):
    """
    State of one concierge turn, passed between the nodes of the graph.
    Created fresh for every call to `run` and discarded afterwards.
    """

    # -- Inputs --
    utterance: str
    history: List[ConversationTurn]
    resume: Optional[ResumeRequest]
    partial_history: List[Message]

    # -- Working message sequence sent to the model --
    messages: List[Message]
    # Capabilities with an older, never-resumed suspension in the history.
    stale_suspensions: Set[str]

    # -- Control Flow --
    decision: Optional[AdapterDecision]
    suspension: Optional[PendingInterrupt]

    # -- Final Output --
    output: Optional[Completed | Suspended]
