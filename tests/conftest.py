import threading
from typing import Any, List

import pytest
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

from concierge.capabilities import CapabilityDescriptor, CapabilityRegistry, CapabilitySuspend
from concierge.llm import LanguageModelAdapter
from concierge.workflows import MainOrchestrator

SYSTEM_INSTRUCTION = "You are a test concierge."


class ScriptedChatModel(BaseChatModel):
    """Replays canned replies in order and records every message list it receives."""

    responses: List[Any] = Field(default_factory=list)
    received: List[List[BaseMessage]] = Field(default_factory=list)
    bound_tools: List[Any] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = list(tools)
        return self

    def _generate(self, messages, stop=None, run_manager=None, **kwargs):
        self.received.append(list(messages))
        if not self.responses:
            raise AssertionError("ScriptedChatModel ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            response = AIMessage(content=response)
        return ChatResult(generations=[ChatGeneration(message=response)])


def tool_calls(*calls, text=""):
    """AIMessage requesting `(name, args, id)` calls."""
    return AIMessage(
        content=text,
        tool_calls=[{"name": name, "args": args, "id": call_id} for name, args, call_id in calls],
    )


class RecordingCapability:
    """A capability stand-in that counts its invocations."""

    def __init__(self, reply):
        self.reply = reply
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, arguments, history):
        with self._lock:
            self.calls.append((arguments.input, tuple(history)))
        return self.reply(arguments, history) if callable(self.reply) else self.reply


@pytest.fixture
def foodie():
    return RecordingCapability("The best sushi is at **Sushi Saito** in Roppongi.")


@pytest.fixture
def transport():
    return RecordingCapability("From Shibuya station take the Ginza line two stops, then walk 5 minutes.")


@pytest.fixture
def day_trip():
    def reply(arguments, history):
        if "lisbon" in arguments.input.lower():
            return "Morning in Alfama, afternoon in Belem, evening in Bairro Alto."
        return CapabilitySuspend(metadata={"question": "Which city are you in?"})

    return RecordingCapability(reply)


@pytest.fixture
def registry(foodie, transport, day_trip):
    return CapabilityRegistry(
        [
            CapabilityDescriptor(name="foodie", description="Finds restaurants.", invoke=foodie),
            CapabilityDescriptor(name="transport", description="Gives directions.", invoke=transport),
            CapabilityDescriptor(name="dayTrip", description="Plans day trips.", invoke=day_trip),
        ]
    )


@pytest.fixture
def chat_model():
    return ScriptedChatModel()


@pytest.fixture
def orchestrator(chat_model, registry):
    return MainOrchestrator(
        adapter=LanguageModelAdapter(chat_model),
        registry=registry,
        system_instruction=SYSTEM_INSTRUCTION,
    )
