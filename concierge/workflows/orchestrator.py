from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from langgraph.errors import GraphRecursionError
from langgraph.graph import StateGraph, END
from omegaconf import DictConfig

from concierge.capabilities import CapabilityRegistry, CapabilitySuspend, build_capability_registry
from concierge.capabilities.registry import CapabilityOutcome
from concierge.exceptions import CapabilityError, NoOutputError, OrchestrationError, UnmatchedInterruptError
from concierge.llm import LLMFactory, LanguageModelAdapter, PromptManager
from concierge.llm.adapter import CapabilityCall
from concierge.models.messages import (
    AgentTurn,
    CapabilityRequest,
    CapabilityResult,
    CapabilitySuspension,
    ConversationTurn,
    Message,
    UserTurn,
    turns_to_messages,
)
from concierge.models.results import (
    Completed,
    OrchestrateRequest,
    OrchestrateResponse,
    OrchestrationResult,
    PendingInterrupt,
    ResumeRequest,
    Suspended,
)
from concierge.utils.config_parser import PROMPTS_PATH
from concierge.workflows.interrupts import find_resumable_suspension, unresolved_suspensions
from concierge.workflows.state import OrchestratorState

logger = logging.getLogger(__name__)


class MainOrchestrator:
    """
    Drives one concierge exchange as a LangGraph workflow.

    The model picks capabilities by name; the orchestrator runs them, feeds
    their results back and loops until the model answers in text or a
    capability suspends to ask the user something. It never branches on
    which capability was picked, only on what came back.
    """

    def __init__(
        self,
        adapter: LanguageModelAdapter,
        registry: CapabilityRegistry,
        system_instruction: str,
        max_concurrency: int = 4,
        recursion_limit: int = 12,
    ):
        self.adapter = adapter
        self.registry = registry
        self.system_instruction = system_instruction
        self.max_concurrency = max_concurrency
        self.recursion_limit = recursion_limit
        self.workflow = self._build_graph()
        self.app = self.workflow.compile()

    @classmethod
    def from_config(cls, app_config: DictConfig, prompts_base_path: Path = PROMPTS_PATH) -> MainOrchestrator:
        orchestrator_config = app_config.orchestrator
        llm_client = LLMFactory(llm_config=app_config.llms).create_llm_client(
            orchestrator_config.llm_provider_key
        )
        system_instruction, _ = PromptManager(prompts_base_path).get_standard_prompts(
            orchestrator_config.prompts_dir
        )
        return cls(
            adapter=LanguageModelAdapter(llm_client),
            registry=build_capability_registry(app_config, prompts_base_path),
            system_instruction=system_instruction,
            max_concurrency=orchestrator_config.get("max_concurrency", 4),
            recursion_limit=orchestrator_config.get("recursion_limit", 12),
        )

    def _build_graph(self) -> StateGraph:
        graph = StateGraph(OrchestratorState)

        graph.add_node("prepare", self.prepare_node)
        graph.add_node("decide", self.decide_node)
        graph.add_node("invoke_capabilities", self.invoke_capabilities_node)
        graph.add_node("suspend", self.suspend_node)
        graph.add_node("finish", self.finish_node)

        graph.set_entry_point("prepare")
        graph.add_edge("prepare", "decide")
        graph.add_conditional_edges(
            "decide",
            self.decide_next_step,
            {"invoke": "invoke_capabilities", "finish": "finish"},
        )
        graph.add_conditional_edges(
            "invoke_capabilities",
            self.decide_after_invoke,
            {"continue": "decide", "suspend": "suspend"},
        )
        graph.add_edge("suspend", END)
        graph.add_edge("finish", END)

        return graph

    # --- Nodes ---

    def prepare_node(self, state: OrchestratorState) -> Dict[str, Any]:
        """Builds the message sequence: a fresh request, or the resumed partial history."""
        resume = state["resume"]
        if resume is None:
            logger.info("--- NEW REQUEST ---")
            messages = turns_to_messages(state["history"]) + [UserTurn(content=state["utterance"])]
            return {"messages": messages, "stale_suspensions": set()}

        logger.info(f"--- RESUMING '{resume.capability_name}' ---")
        name = resume.capability_name
        if name not in self.registry:
            raise UnmatchedInterruptError(name, "the capability is not registered")

        partial_history = list(state["partial_history"])
        match = find_resumable_suspension(partial_history, name)
        if match is None:
            raise UnmatchedInterruptError(name)

        # The user's answer stands in for the suspended call's result; the capability is not run again.
        answer = CapabilityResult(request_id=match.request_id, name=match.name, output=resume.user_response)
        stale = {
            m.name
            for m in unresolved_suspensions(partial_history)
            if m.request_id != match.request_id and m.name != name
        }
        return {"messages": partial_history + [answer], "stale_suspensions": stale}

    def decide_node(self, state: OrchestratorState) -> Dict[str, Any]:
        logger.info("--- CONCIERGE DECISION ---")
        decision = self.adapter.decide(self.system_instruction, state["messages"], self.registry.list())
        if decision.is_empty:
            raise NoOutputError("The model returned neither text nor a capability call.")
        return {"decision": decision}

    def invoke_capabilities_node(self, state: OrchestratorState) -> Dict[str, Any]:
        """Runs every selected capability and records the calls and their results."""
        decision = state["decision"]
        calls = decision.calls

        for call in calls:
            if call.name in state["stale_suspensions"]:
                raise UnmatchedInterruptError(
                    call.name,
                    "the capability is still suspended under an earlier interrupt",
                    already_run=self._invoked_this_turn(state),
                )

        logger.info(f"--- RUNNING CAPABILITIES: {[call.name for call in calls]} ---")
        outcomes = self._invoke_all(calls, state["history"])

        recorded: List[Message] = [AgentTurn(content=decision.text)] if decision.text else []
        results: List[Message] = []
        first_suspended: Optional[CapabilityCall] = None
        for call in calls:
            outcome = outcomes[call.id]
            if isinstance(outcome, CapabilitySuspend):
                recorded.append(
                    CapabilitySuspension(
                        request_id=call.id, name=call.name, input=call.input, metadata=outcome.metadata
                    )
                )
                first_suspended = first_suspended or call
            else:
                recorded.append(CapabilityRequest(request_id=call.id, name=call.name, input=call.input))
                results.append(CapabilityResult(request_id=call.id, name=call.name, output=outcome))

        messages = state["messages"] + recorded + results
        suspension = None
        if first_suspended is not None:
            suspension = PendingInterrupt(
                capability_name=first_suspended.name,
                capability_input=first_suspended.input,
                metadata=outcomes[first_suspended.id].metadata,
                partial_history=messages,
            )
        return {"messages": messages, "suspension": suspension, "decision": None}

    def suspend_node(self, state: OrchestratorState) -> Dict[str, Any]:
        interrupt = state["suspension"]
        logger.info(f"--- SUSPENDED ON '{interrupt.capability_name}' ---")
        return {"output": Suspended(interrupt=interrupt)}

    def finish_node(self, state: OrchestratorState) -> Dict[str, Any]:
        logger.info("--- FINISHING TURN ---")
        text = state["decision"].text
        messages = state["messages"] + [AgentTurn(content=text)]
        return {"messages": messages, "output": Completed(text=text, partial_history=messages)}

    # --- Routing ---

    def decide_next_step(self, state: OrchestratorState) -> str:
        return "invoke" if state["decision"].calls else "finish"

    def decide_after_invoke(self, state: OrchestratorState) -> str:
        return "suspend" if state.get("suspension") is not None else "continue"

    # --- Capability execution ---

    @staticmethod
    def _invoked_this_turn(state: OrchestratorState) -> Tuple[str, ...]:
        """Names of the capabilities run since the turn started, in order."""
        new_messages = state["messages"][len(state["partial_history"]) + 1 :]
        return tuple(
            m.name for m in new_messages if isinstance(m, (CapabilityRequest, CapabilitySuspension))
        )

    def _invoke_one(self, call: CapabilityCall, history: Sequence[ConversationTurn]) -> CapabilityOutcome:
        try:
            return self.registry.invoke(call.name, call.input, history)
        except OrchestrationError:
            raise
        except Exception as e:
            raise CapabilityError(call.name, str(e)) from e

    def _invoke_all(
        self, calls: Sequence[CapabilityCall], history: Sequence[ConversationTurn]
    ) -> Dict[str, CapabilityOutcome]:
        """Invokes independent capabilities concurrently; outcomes are keyed by call id."""
        if len(calls) == 1:
            return {calls[0].id: self._invoke_one(calls[0], history)}

        outcomes: Dict[str, CapabilityOutcome] = {}
        with ThreadPoolExecutor(max_workers=max(1, min(self.max_concurrency, len(calls)))) as executor:
            futures = {executor.submit(self._invoke_one, call, history): call.id for call in calls}
            for future in as_completed(futures):
                outcomes[futures[future]] = future.result()
        return outcomes

    # --- Public interface ---

    def run(
        self,
        utterance: str,
        history: Optional[Sequence[ConversationTurn]] = None,
        resume: Optional[ResumeRequest] = None,
        partial_history: Optional[Sequence[Message]] = None,
    ) -> OrchestrationResult:
        """
        Runs one turn.

        `history` is only read. When `resume` is given, `partial_history` must
        be the one returned with the interrupt being answered.

        Raises:
            NoOutputError, CapabilityError, UnmatchedInterruptError,
            AdapterTransportError: surfaced as-is, nothing is retried.
        """
        initial_state: OrchestratorState = {
            "utterance": utterance,
            "history": list(history or []),
            "resume": resume,
            "partial_history": list(partial_history or []),
            "messages": [],
            "stale_suspensions": set(),
            "decision": None,
            "suspension": None,
            "output": None,
        }
        try:
            final_state = self.app.invoke(initial_state, config={"recursion_limit": self.recursion_limit})
        except GraphRecursionError as e:
            raise NoOutputError(
                f"The model kept calling capabilities without answering within {self.recursion_limit} steps."
            ) from e

        output = final_state.get("output")
        if output is None:
            raise NoOutputError("The workflow ended without a result.")
        return output

    def orchestrate(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        The request/response form of `run`, with camelCase JSON payloads:
        `{utterance, history?, resume?, partialHistory?}` in,
        `{text | interrupt, partialHistory}` out.
        """
        payload = OrchestrateRequest.model_validate(request)
        result = self.run(
            payload.utterance,
            payload.history,
            resume=payload.resume,
            partial_history=payload.partial_history,
        )
        return OrchestrateResponse.from_result(result).model_dump(mode="json", by_alias=True, exclude_none=True)
