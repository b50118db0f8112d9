from typing import Any, Dict, List, Sequence, Union

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage

from concierge.models.messages import (
    AgentTurn,
    CapabilityRequest,
    CapabilityResult,
    CapabilitySuspension,
    Message,
    UserTurn,
)

# Sent in place of a result for suspended calls that were never resumed.
AWAITING_USER_INPUT = "This request is on hold until the user provides more information."


def _tool_call(message: Union[CapabilityRequest, CapabilitySuspension]) -> Dict[str, Any]:
    return {"name": message.name, "args": dict(message.input), "id": message.request_id, "type": "tool_call"}


def to_langchain_messages(messages: Sequence[Message]) -> List[BaseMessage]:
    """
    Converts a partial history into LangChain chat messages.

    Consecutive capability calls are folded into one AIMessage, and every call
    ends up with a ToolMessage: its result when there is one, otherwise a
    placeholder, because the chat APIs reject unanswered tool calls.
    """
    converted: List[BaseMessage] = []
    unanswered: Dict[str, str] = {}

    def close_unanswered():
        for call_id, name in unanswered.items():
            converted.append(ToolMessage(content=AWAITING_USER_INPUT, tool_call_id=call_id, name=name))
        unanswered.clear()

    for message in messages:
        if isinstance(message, (CapabilityRequest, CapabilitySuspension)):
            last = converted[-1] if converted else None
            if isinstance(last, AIMessage):
                last.tool_calls.append(_tool_call(message))
            else:
                close_unanswered()
                converted.append(AIMessage(content="", tool_calls=[_tool_call(message)]))
            unanswered[message.request_id] = message.name
        elif isinstance(message, CapabilityResult):
            converted.append(
                ToolMessage(content=message.output, tool_call_id=message.request_id, name=message.name)
            )
            unanswered.pop(message.request_id, None)
        elif isinstance(message, UserTurn):
            close_unanswered()
            converted.append(HumanMessage(content=message.content))
        elif isinstance(message, AgentTurn):
            close_unanswered()
            converted.append(AIMessage(content=message.content))
        else:
            raise TypeError(f"Unsupported message type: {type(message).__name__}")

    close_unanswered()
    return converted


def content_text(content: Union[str, List[Any]]) -> str:
    """Flattens an AIMessage content (plain string or list of parts) into text."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)
