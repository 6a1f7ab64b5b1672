from .llm_factory import LLMFactory
from .transport import ChatTransport

__all__ = [
    "LLMFactory",
    "ChatTransport",
]
