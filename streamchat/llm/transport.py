from __future__ import annotations

import logging
from typing import Any, AsyncIterator, List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, BaseMessageChunk, HumanMessage, SystemMessage
from omegaconf import DictConfig

from streamchat.exceptions import StreamCancelled, TransportError
from streamchat.llm.llm_factory import LLMFactory
from streamchat.models import ChatTurn, Role, StreamUpdate, UsageStats
from streamchat.streaming.cancellation import CancellationSignal

logger = logging.getLogger(__name__)


class ChatTransport:
    """
    Streams chat completions from a LangChain chat client.

    The client is created once per session and reused for every turn, so the
    underlying HTTP connection and credential are shared across requests.
    """

    def __init__(self, llm_client: BaseChatModel):
        self.llm_client = llm_client

    @classmethod
    def from_config(
        cls,
        llm_config: DictConfig,
        provider_key: str,
        credential: str,
        model: str,
        endpoint: Optional[str] = None,
    ) -> ChatTransport:
        """Builds the transport from the configured provider plus the runtime credential and model id."""
        llm_factory = LLMFactory(llm_config=llm_config)
        llm_client = llm_factory.create_llm_client(
            provider_key,
            overrides={"api_key": credential, "model": model, "base_url": endpoint},
        )
        return cls(llm_client)

    @staticmethod
    def _build_messages(turns: Sequence[ChatTurn]) -> List[BaseMessage]:
        """Maps conversation turns onto LangChain message types."""
        messages: List[BaseMessage] = []
        for turn in turns:
            if turn.role == Role.SYSTEM:
                messages.append(SystemMessage(content=turn.content))
            elif turn.role == Role.USER:
                messages.append(HumanMessage(content=turn.content))
            elif turn.role == Role.ASSISTANT:
                messages.append(AIMessage(content=turn.content))
            else:
                raise ValueError(f"Unsupported role: {turn.role!r}")
        return messages

    async def stream_completion(
        self, turns: Sequence[ChatTurn], signal: CancellationSignal
    ) -> AsyncIterator[StreamUpdate]:
        """
        Yields one StreamUpdate per chunk received from the model.

        Raises:
            StreamCancelled: The signal had already fired when a chunk arrived.
            TransportError: The client failed (network, authentication, unknown model...).
        """
        messages = self._build_messages(turns)
        logger.debug(f"Sending {len(messages)} messages to the model.")
        try:
            async for chunk in self.llm_client.astream(messages):
                if signal.is_triggered:
                    raise StreamCancelled("Operation cancelled.")
                yield StreamUpdate(fragment=_chunk_text(chunk), usage=_chunk_usage(chunk))
        except StreamCancelled:
            raise
        except Exception as e:
            raise TransportError(str(e)) from e


def _chunk_text(chunk: BaseMessageChunk) -> Optional[str]:
    content: Any = chunk.content
    if isinstance(content, str):
        return content or None

    # Multimodal providers send a list of content blocks
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type", "text") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts) or None


def _chunk_usage(chunk: BaseMessageChunk) -> Optional[UsageStats]:
    usage = getattr(chunk, "usage_metadata", None)
    if not usage:
        return None
    return UsageStats(
        prompt_tokens=usage.get("input_tokens", 0),
        completion_tokens=usage.get("output_tokens", 0),
        total_tokens=usage.get("total_tokens", 0),
    )
