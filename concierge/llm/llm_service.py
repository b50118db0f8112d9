from typing import Dict, Any, List, Type, Optional
from pathlib import Path

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import SystemMessage, HumanMessage, BaseMessage
from pydantic import BaseModel
from omegaconf import DictConfig

from concierge.llm.llm_factory import LLMFactory
from concierge.llm.message_converter import content_text
from concierge.llm.prompt_manager import PromptManager


class LLMService:
    """
    Pairs one chat client with one agent's prompt templates.

    Specialists hold an instance each and call it with the variables their
    templates expect.
    """

    def __init__(self, llm_client: BaseChatModel, system_prompt_template: str, human_prompt_template: Optional[str]):
        self.llm_client = llm_client
        self.system_prompt_template = system_prompt_template
        self.human_prompt_template = human_prompt_template

    @classmethod
    def from_config(
        cls,
        agent_prompts_dir: str,
        provider_key: str,
        llm_config: DictConfig,
        prompts_base_path: Path,
    ) -> "LLMService":
        """Builds the client and loads the prompts for a single agent."""
        llm_client = LLMFactory(llm_config=llm_config).create_llm_client(provider_key)
        prompt_manager = PromptManager(prompts_base_path=prompts_base_path)
        system_prompt, human_prompt = prompt_manager.get_standard_prompts(agent_prompts_dir)
        return cls(llm_client, system_prompt, human_prompt)

    def _build_messages(self, variables: Dict[str, Any]) -> List[BaseMessage]:
        if self.human_prompt_template is None:
            raise ValueError("No user prompt template available for this agent.")
        return [
            SystemMessage(content=self.system_prompt_template.format(**variables)),
            HumanMessage(content=self.human_prompt_template.format(**variables)),
        ]

    def generate_text(self, variables: Dict[str, Any]) -> str:
        """Generates a plain text response, joining the parts of multi-part replies."""
        response = self.llm_client.invoke(self._build_messages(variables))
        return content_text(response.content)

    def generate_structured(self, variables: Dict[str, Any], response_model: Type[BaseModel]) -> Optional[BaseModel]:
        """Generates a response parsed into `response_model`; None when the model gave nothing parseable."""
        structured_llm = self.llm_client.with_structured_output(response_model)
        return structured_llm.invoke(self._build_messages(variables))
