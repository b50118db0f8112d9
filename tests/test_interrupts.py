"""Tests for the client-side suspend/resume controller."""

from unittest.mock import MagicMock

import pytest

from concierge.exceptions import AdapterTransportError, UnmatchedInterruptError
from concierge.models.messages import (
    CapabilityRequest,
    CapabilityResult,
    CapabilitySuspension,
    ConversationTurn,
    UserTurn,
)
from concierge.models.results import Completed, PendingInterrupt, ResumeRequest, Suspended
from concierge.workflows import InterruptController, find_resumable_suspension
from concierge.workflows.interrupts import unresolved_suspensions


def suspended(name, request_id="call_1"):
    return Suspended(
        interrupt=PendingInterrupt(
            capability_name=name,
            capability_input={"input": "plan"},
            metadata={"question": "Which city?"},
            partial_history=[
                UserTurn(content="Plan my weekend"),
                CapabilitySuspension(request_id=request_id, name=name, input={"input": "plan"}),
            ],
        )
    )


@pytest.fixture
def orchestrator():
    return MagicMock()


@pytest.fixture
def controller(orchestrator):
    return InterruptController(orchestrator)


class TestInterruptController:
    def test_idle_turn_is_a_plain_run(self, controller, orchestrator):
        orchestrator.run.return_value = Completed(text="Hi!")
        history = (ConversationTurn(role="user", content="earlier"),)

        result = controller.submit("hello", history)

        assert result.text == "Hi!"
        orchestrator.run.assert_called_once_with("hello", history)
        assert controller.state == "idle"

    def test_suspension_moves_to_awaiting_response(self, controller, orchestrator):
        orchestrator.run.return_value = suspended("dayTrip")

        controller.submit("Plan my weekend", ())

        assert controller.state == "awaiting_response"
        assert controller.pending.capability_name == "dayTrip"

    def test_next_message_answers_the_pending_interrupt(self, controller, orchestrator):
        first = suspended("dayTrip")
        orchestrator.run.side_effect = [first, Completed(text="Lisbon itinerary")]

        controller.submit("Plan my weekend", ())
        result = controller.submit("Lisbon", ())

        assert result.text == "Lisbon itinerary"
        assert controller.state == "idle"
        orchestrator.run.assert_called_with(
            "Lisbon",
            (),
            resume=ResumeRequest(capability_name="dayTrip", user_response="Lisbon"),
            partial_history=first.interrupt.partial_history,
        )

    def test_new_suspension_replaces_the_old_one(self, controller, orchestrator):
        orchestrator.run.side_effect = [suspended("dayTrip"), suspended("transport", "call_2")]

        controller.submit("Plan my weekend", ())
        controller.submit("Lisbon", ())

        assert controller.pending.capability_name == "transport"

    @pytest.mark.parametrize(
        "error", [UnmatchedInterruptError("dayTrip"), AdapterTransportError("network down")]
    )
    def test_failed_resume_clears_the_interrupt(self, controller, orchestrator, error):
        orchestrator.run.side_effect = [suspended("dayTrip"), error, Completed(text="fresh answer")]

        controller.submit("Plan my weekend", ())
        with pytest.raises(type(error)):
            controller.submit("Lisbon", ())

        assert controller.state == "idle"
        controller.submit("Something unrelated", ())
        assert orchestrator.run.call_args.kwargs == {}

    def test_reset_drops_the_pending_interrupt(self, controller, orchestrator):
        orchestrator.run.return_value = suspended("dayTrip")
        controller.submit("Plan my weekend", ())

        controller.reset()

        assert controller.pending is None


class TestFindResumableSuspension:
    def test_returns_none_when_nothing_is_suspended(self):
        history = [
            UserTurn(content="sushi?"),
            CapabilityRequest(request_id="call_1", name="foodie"),
            CapabilityResult(request_id="call_1", name="foodie", output="Sushi Saito"),
        ]

        assert find_resumable_suspension(history, "foodie") is None

    def test_matches_on_capability_name(self):
        trip = CapabilitySuspension(request_id="call_1", name="dayTrip")
        history = [UserTurn(content="plan"), trip]

        assert find_resumable_suspension(history, "dayTrip") == trip
        assert find_resumable_suspension(history, "foodie") is None

    def test_prefers_the_most_recent_match(self):
        older = CapabilitySuspension(request_id="call_1", name="dayTrip")
        newer = CapabilitySuspension(request_id="call_2", name="dayTrip")

        assert find_resumable_suspension([older, UserTurn(content="again"), newer], "dayTrip") == newer

    def test_skips_suspensions_that_were_already_answered(self):
        answered = CapabilitySuspension(request_id="call_1", name="dayTrip")
        history = [answered, CapabilityResult(request_id="call_1", name="dayTrip", output="Lisbon")]

        assert find_resumable_suspension(history, "dayTrip") is None
        assert unresolved_suspensions(history) == []
