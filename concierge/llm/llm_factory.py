import importlib
import logging

from omegaconf import OmegaConf, DictConfig
from langchain_core.language_models.chat_models import BaseChatModel

logger = logging.getLogger(__name__)


class LLMFactory:
    """
    Builds LangChain chat clients from the `llm_providers` section of llms.yaml.

    Each provider entry names an importable chat model `class` and the
    `params` passed to its constructor.
    """

    def __init__(self, llm_config: DictConfig):
        if (
            not isinstance(llm_config, DictConfig)
            or "llm_providers" not in llm_config
            or not isinstance(llm_config.llm_providers, DictConfig)
        ):
            raise ValueError("LLM config must be a mapping that contains an 'llm_providers' mapping.")
        self._config = llm_config.llm_providers

    def create_llm_client(self, provider_key: str) -> BaseChatModel:
        """
        Instantiates the chat model registered under `provider_key`.

        Raises:
            ValueError: Unknown provider or incomplete provider entry.
            ImportError / AttributeError: The configured class cannot be loaded.
            TypeError: The params do not match the class constructor.
        """
        if provider_key not in self._config:
            raise ValueError(
                f"Provider '{provider_key}' not found in the configuration. "
                f"Available providers: {list(self._config.keys())}"
            )

        provider_config = self._config.get(provider_key)
        if "class" not in provider_config or "params" not in provider_config:
            raise ValueError(f"Provider '{provider_key}' configuration is missing 'class' or 'params'.")

        resolved_params = OmegaConf.to_container(provider_config.params, resolve=True)

        module_path, class_name = provider_config["class"].rsplit(".", 1)
        try:
            module = importlib.import_module(module_path)
            llm_class = getattr(module, class_name)
        except ImportError as e:
            raise ImportError(f"Could not import module '{module_path}' for LLM provider '{provider_key}'.") from e
        except AttributeError as e:
            raise AttributeError(f"Could not find class '{class_name}' in module '{module_path}'.") from e

        try:
            client = llm_class(**resolved_params)
        except TypeError as e:
            raise TypeError(
                f"Failed to instantiate LLM client for '{provider_key}'. "
                f"Check if the parameters in the config match the class constructor. Error: {e}"
            ) from e

        logger.info(f"Created LLM client '{provider_key}' ({class_name}).")
        return client
