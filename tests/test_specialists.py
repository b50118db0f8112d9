"""Tests for the LLM-backed specialist capabilities."""

from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage
from pydantic import ValidationError

from concierge.capabilities import CapabilitySuspend, SpecialistCapability
from concierge.capabilities.specialists import (
    GOOGLE_SEARCH_TOOL,
    NO_SEARCH,
    SEARCH_NOW,
    format_history,
    search_grounded,
)
from concierge.exceptions import CapabilityError
from concierge.llm import LLMService
from concierge.models.capability_models import SpecialistInput, SpecialistResponse
from concierge.models.messages import ConversationTurn

from conftest import ScriptedChatModel


@pytest.fixture
def llm_service():
    return MagicMock(spec=LLMService)


@pytest.fixture
def foodie(llm_service):
    return SpecialistCapability(name="foodie", llm_service=llm_service)


class TestSpecialistCapability:
    def test_answer_is_returned_as_text(self, foodie, llm_service):
        llm_service.generate_structured.return_value = SpecialistResponse(
            status="answer", answer="The best sushi is at **Sushi Saito**."
        )
        history = (ConversationTurn(role="user", content="I'm in Tokyo"),)

        result = foodie(SpecialistInput(input="best sushi"), history)

        assert result == "The best sushi is at **Sushi Saito**."
        llm_service.generate_structured.assert_called_once_with(
            variables={"input": "best sushi", "history": "User: I'm in Tokyo", "search_results": NO_SEARCH},
            response_model=SpecialistResponse,
        )

    def test_clarification_becomes_a_suspension(self, foodie, llm_service):
        llm_service.generate_structured.return_value = SpecialistResponse(
            status="clarification", clarification_question="Which city are you in?"
        )

        result = foodie(SpecialistInput(input="best sushi"), ())

        assert result == CapabilitySuspend(metadata={"question": "Which city are you in?"})

    def test_no_structured_output_is_a_capability_error(self, foodie, llm_service):
        llm_service.generate_structured.return_value = None

        with pytest.raises(CapabilityError):
            foodie(SpecialistInput(input="best sushi"), ())

    def test_model_failure_is_a_capability_error(self, foodie, llm_service):
        llm_service.generate_structured.side_effect = RuntimeError("safety block")

        with pytest.raises(CapabilityError, match="safety block"):
            foodie(SpecialistInput(input="best sushi"), ())


class TestSearchGrounding:
    @pytest.fixture
    def search_service(self):
        return MagicMock(spec=LLMService)

    @pytest.fixture
    def grounded_foodie(self, llm_service, search_service):
        return SpecialistCapability(name="foodie", llm_service=llm_service, search_service=search_service)

    def test_findings_feed_the_structured_pass(self, grounded_foodie, llm_service, search_service):
        search_service.generate_text.return_value = "  Sushi Saito (Roppongi) holds three stars in 2025.  "
        llm_service.generate_structured.return_value = SpecialistResponse(
            status="answer", answer="The best sushi is at **Sushi Saito**."
        )

        result = grounded_foodie(SpecialistInput(input="best sushi in Tokyo"), ())

        assert result == "The best sushi is at **Sushi Saito**."
        search_service.generate_text.assert_called_once_with(
            {
                "input": "best sushi in Tokyo",
                "history": "No previous conversation history.",
                "search_results": SEARCH_NOW,
            }
        )
        variables = llm_service.generate_structured.call_args.kwargs["variables"]
        assert variables["search_results"] == "Sushi Saito (Roppongi) holds three stars in 2025."

    def test_blank_findings_are_a_capability_error(self, grounded_foodie, llm_service, search_service):
        search_service.generate_text.return_value = "   "

        with pytest.raises(CapabilityError, match="search pass"):
            grounded_foodie(SpecialistInput(input="best sushi"), ())
        llm_service.generate_structured.assert_not_called()

    def test_search_failure_is_a_capability_error(self, grounded_foodie, search_service):
        search_service.generate_text.side_effect = RuntimeError("grounding quota exceeded")

        with pytest.raises(CapabilityError, match="grounding quota exceeded"):
            grounded_foodie(SpecialistInput(input="best sushi"), ())

    def test_search_client_has_google_search_bound(self):
        model = ScriptedChatModel(responses=["Sushi Saito is open tonight."])
        service = LLMService(model, "You are a food critic.", "{search_results}\n{input}")

        grounded = search_grounded(service)
        text = grounded.generate_text({"search_results": SEARCH_NOW, "input": "sushi"})

        assert model.bound_tools == [GOOGLE_SEARCH_TOOL]
        assert text == "Sushi Saito is open tonight."
        assert grounded.human_prompt_template == service.human_prompt_template


class TestSpecialistResponse:
    def test_answer_requires_text(self):
        with pytest.raises(ValidationError):
            SpecialistResponse(status="answer", answer="  ")

    def test_clarification_requires_question(self):
        with pytest.raises(ValidationError):
            SpecialistResponse(status="clarification")


class TestLLMService:
    def test_prompts_are_formatted_into_system_and_user_messages(self):
        model = ScriptedChatModel(responses=["Take the Ginza line."])
        service = LLMService(model, "You are a {role}.", "History:\n{history}\n\nUser query: {input}")

        text = service.generate_text({"role": "navigator", "history": "none", "input": "to Ueno"})

        assert text == "Take the Ginza line."
        system, human = model.received[0]
        assert system.content == "You are a navigator."
        assert human.content == "History:\nnone\n\nUser query: to Ueno"

    def test_multi_part_replies_are_joined(self):
        model = ScriptedChatModel(
            responses=[AIMessage(content=[{"type": "text", "text": "Take the "}, {"type": "text", "text": "Ginza line."}])]
        )
        service = LLMService(model, "system", "{input}")

        assert service.generate_text({"input": "to Ueno"}) == "Take the Ginza line."

    def test_missing_user_template(self):
        service = LLMService(ScriptedChatModel(), "system only", None)

        with pytest.raises(ValueError):
            service.generate_text({})


def test_format_history():
    history = (
        ConversationTurn(role="user", content="Hi"),
        ConversationTurn(role="agent", content="Hello!"),
    )

    assert format_history(history) == "User: Hi\nConcierge: Hello!"
    assert format_history(()) == "No previous conversation history."
