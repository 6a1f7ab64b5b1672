import importlib
import logging
from typing import Any, Dict, Optional, Type

from omegaconf import OmegaConf, DictConfig
from langchain_core.language_models.chat_models import BaseChatModel

logger = logging.getLogger(__name__)


class LLMFactory:
    """
    Builds LangChain chat clients from the `llm_providers` table in llms.yaml.

    Each provider entry names a chat model class by dotted path and the
    constructor params to pass it. Values only known at runtime (the
    credential and model id typed in at start-up) are merged on top.
    """

    def __init__(self, llm_config: DictConfig):
        if not isinstance(llm_config, DictConfig) or not isinstance(llm_config.get('llm_providers'), DictConfig):
            raise ValueError("LLM config must contain an 'llm_providers' mapping.")
        self._providers = llm_config.llm_providers

    def _provider(self, provider_key: str) -> DictConfig:
        provider = self._providers.get(provider_key)
        if provider is None:
            raise ValueError(f"Provider '{provider_key}' not found in the configuration. "
                             f"Available providers: {list(self._providers.keys())}")
        if 'class' not in provider or 'params' not in provider:
            raise ValueError(f"Provider '{provider_key}' configuration is missing 'class' or 'params'.")
        return provider

    @staticmethod
    def _import_class(dotted_path: str) -> Type[BaseChatModel]:
        module_path, class_name = dotted_path.rsplit('.', 1)
        try:
            module = importlib.import_module(module_path)
        except ImportError as e:
            raise ImportError(f"Could not import chat model module '{module_path}'. Is its package installed?") from e
        try:
            return getattr(module, class_name)
        except AttributeError as e:
            raise AttributeError(f"Module '{module_path}' has no chat model class '{class_name}'.") from e

    def create_llm_client(self, provider_key: str, overrides: Optional[Dict[str, Any]] = None) -> BaseChatModel:
        """
        Instantiates the chat client for a provider.

        Args:
            provider_key: Key in llms.yaml, e.g. 'github_models'.
            overrides: Runtime constructor params (api_key, model, base_url).
                       Entries set to None are ignored; the rest win over the configured params.
        """
        provider = self._provider(provider_key)
        params = OmegaConf.to_container(provider.params, resolve=True) or {}
        params.update({k: v for k, v in (overrides or {}).items() if v is not None})

        llm_class = self._import_class(provider['class'])
        logger.info(f"Creating '{llm_class.__name__}' client for provider '{provider_key}'.")
        try:
            return llm_class(**params)
        except TypeError as e:
            raise TypeError(f"Could not construct the chat client for '{provider_key}'; "
                            f"check its params in llms.yaml. Error: {e}") from e
