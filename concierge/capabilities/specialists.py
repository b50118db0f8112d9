from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Type

from omegaconf import DictConfig
from pydantic import BaseModel, Field, create_model

from concierge.capabilities.registry import (
    CapabilityDescriptor,
    CapabilityOutcome,
    CapabilityRegistry,
    CapabilitySuspend,
)
from concierge.exceptions import CapabilityError
from concierge.llm.llm_service import LLMService
from concierge.models.capability_models import SpecialistInput, SpecialistResponse
from concierge.models.messages import ConversationTurn

logger = logging.getLogger(__name__)


# Gemini's built-in Google Search tool, bound to the clients of grounded specialists.
GOOGLE_SEARCH_TOOL = {"google_search": {}}

SEARCH_NOW = "None yet. Use Google Search to look up current, specific details before you reply."
NO_SEARCH = "No live search was run for this request."


def format_history(history: Sequence[ConversationTurn]) -> str:
    lines = [f"{'User' if turn.role == 'user' else 'Concierge'}: {turn.content}" for turn in history]
    return "\n".join(lines) if lines else "No previous conversation history."


def search_grounded(llm_service: LLMService) -> LLMService:
    """Same prompts as `llm_service`, on a client that can run Google Search."""
    return LLMService(
        llm_service.llm_client.bind_tools([GOOGLE_SEARCH_TOOL]),
        llm_service.system_prompt_template,
        llm_service.human_prompt_template,
    )


class SpecialistCapability:
    """
    A capability backed by its own LLM call and system prompt.

    The model answers with a SpecialistResponse; a 'clarification' status is
    turned into a CapabilitySuspend carrying the question, so the concierge
    can surface it to the user without knowing anything about this specialist.

    Grounded specialists run two passes: a free-text pass with Google Search
    bound, then the structured pass over those findings. Gemini does not
    combine search grounding with structured output in one call.
    """

    def __init__(self, name: str, llm_service: LLMService, search_service: Optional[LLMService] = None):
        self.name = name
        self.llm_service = llm_service
        self.search_service = search_service

    @classmethod
    def from_config(
        cls,
        name: str,
        capability_config: DictConfig,
        app_config: DictConfig,
        prompts_base_path: Path,
    ) -> SpecialistCapability:
        llm_service = LLMService.from_config(
            agent_prompts_dir=capability_config.prompts_dir,
            provider_key=capability_config.llm_provider_key,
            llm_config=app_config.llms,
            prompts_base_path=prompts_base_path,
        )
        search_service = search_grounded(llm_service) if capability_config.get("grounding", False) else None
        return cls(name=name, llm_service=llm_service, search_service=search_service)

    def _search(self, variables: Dict[str, str]) -> str:
        if self.search_service is None:
            return NO_SEARCH
        findings = self.search_service.generate_text({**variables, "search_results": SEARCH_NOW}).strip()
        if not findings:
            raise CapabilityError(self.name, "the search pass returned no text")
        logger.info(f"Specialist '{self.name}' gathered {len(findings)} characters of search findings.")
        return findings

    def __call__(self, arguments: BaseModel, history: Sequence[ConversationTurn]) -> CapabilityOutcome:
        logger.info(f"--- RUNNING SPECIALIST: {self.name} ---")
        variables = {"input": arguments.input, "history": format_history(history)}
        try:
            variables["search_results"] = self._search(variables)
            response = self.llm_service.generate_structured(
                variables=variables, response_model=SpecialistResponse
            )
        except CapabilityError:
            raise
        except Exception as e:
            raise CapabilityError(self.name, f"model call failed: {e}") from e

        if response is None:
            raise CapabilityError(self.name, "no structured output from the model")

        if response.status == "clarification":
            logger.info(f"Specialist '{self.name}' needs clarification: {response.clarification_question}")
            return CapabilitySuspend(metadata={"question": response.clarification_question})
        return response.answer


def build_capability_registry(app_config: DictConfig, prompts_base_path: Path) -> CapabilityRegistry:
    """Creates one specialist per entry of capabilities.yaml."""
    descriptors: List[CapabilityDescriptor] = []
    for name, capability_config in app_config.capabilities.items():
        specialist = SpecialistCapability.from_config(
            name=name,
            capability_config=capability_config,
            app_config=app_config,
            prompts_base_path=prompts_base_path,
        )
        descriptors.append(
            CapabilityDescriptor(
                name=name,
                description=" ".join(capability_config.description.split()),
                invoke=specialist,
                input_schema=_input_schema_for(capability_config),
            )
        )
    return CapabilityRegistry(descriptors)


def _input_schema_for(capability_config: DictConfig) -> Type[BaseModel]:
    """Specialists share SpecialistInput unless the config rewords its field description."""
    input_description = capability_config.get("input_description")
    if not input_description:
        return SpecialistInput
    return create_model("SpecialistInput", input=(str, Field(..., description=input_description)))
