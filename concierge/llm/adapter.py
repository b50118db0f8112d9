import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import SystemMessage
from langchain_core.utils.function_calling import convert_to_openai_tool
from pydantic import BaseModel, Field

from concierge.capabilities.registry import CapabilityDescriptor
from concierge.exceptions import AdapterTransportError
from concierge.llm.message_converter import content_text, to_langchain_messages
from concierge.models.messages import Message

logger = logging.getLogger(__name__)


class CapabilityCall(BaseModel):
    """One capability the model asked for, with the id that ties it to its result."""

    id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)


class AdapterDecision(BaseModel):
    text: Optional[str] = None
    calls: List[CapabilityCall] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.calls


def capability_tool(descriptor: CapabilityDescriptor) -> Dict[str, Any]:
    """Renders a descriptor's declaration as a function-calling tool definition."""
    declaration = descriptor.declaration()
    schema = dict(declaration["inputSchema"], title=declaration["name"], description=declaration["description"])
    return convert_to_openai_tool(schema)


class LanguageModelAdapter:
    """
    The only place the concierge talks to its chat model.

    Given the system instruction, the message sequence and the capabilities on
    offer, it returns the model's decision: text, capability calls, or both.
    The adapter does not interpret the decision.
    """

    def __init__(self, llm_client: BaseChatModel):
        self.llm_client = llm_client

    def decide(
        self,
        system_instruction: str,
        messages: Sequence[Message],
        capabilities: Sequence[CapabilityDescriptor],
    ) -> AdapterDecision:
        chat_messages = [SystemMessage(content=system_instruction)] + to_langchain_messages(messages)
        tools = [capability_tool(descriptor) for descriptor in capabilities]

        try:
            tool_calling_llm = self.llm_client.bind_tools(tools) if tools else self.llm_client
            response = tool_calling_llm.invoke(chat_messages)
        except Exception as e:
            raise AdapterTransportError(f"Language model call failed: {e}") from e

        if getattr(response, "invalid_tool_calls", None):
            logger.warning(f"Model produced {len(response.invalid_tool_calls)} malformed tool call(s); ignoring them.")

        calls: List[CapabilityCall] = []
        seen_ids = set()
        for tool_call in getattr(response, "tool_calls", None) or []:
            call_id = tool_call.get("id")
            if not call_id or call_id in seen_ids:
                call_id = f"call_{uuid.uuid4().hex}"
            seen_ids.add(call_id)
            calls.append(CapabilityCall(id=call_id, name=tool_call["name"], input=tool_call.get("args") or {}))
        text = content_text(response.content).strip() or None
        decision = AdapterDecision(text=text, calls=calls)
        logger.info(
            f"Model decision: {len(calls)} capability call(s) {[c.name for c in calls]}, "
            f"text={'yes' if text else 'no'}"
        )
        return decision
