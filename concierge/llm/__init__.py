from .llm_factory import LLMFactory
from .prompt_manager import PromptManager
from .llm_service import LLMService
from .adapter import AdapterDecision, CapabilityCall, LanguageModelAdapter

__all__ = [
    "LLMFactory",
    "PromptManager",
    "LLMService",
    "AdapterDecision",
    "CapabilityCall",
    "LanguageModelAdapter",
]
