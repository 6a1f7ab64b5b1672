from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from langgraph.graph import StateGraph, END
from omegaconf import DictConfig

from streamchat.exceptions import StreamCancelled, TransportError
from streamchat.memory import ConversationHistory
from streamchat.models import ChatTurn, UsageStats
from streamchat.streaming import CancellationSignal, StreamConsumer
from streamchat.streaming.consumer import CompletionStream
from streamchat.workflows.state import ExchangeState, TurnPhase

logger = logging.getLogger(__name__)


class MessageReader(Protocol):
    def read_message(self) -> str: ...


class OutputSink(Protocol):
    def write_ai_header(self) -> None: ...

    def write_fragment(self, text: str) -> None: ...

    def display_error(self, message: str) -> None: ...

    def display_usage(self, usage: Optional[UsageStats]) -> None: ...


class TurnOrchestrator:
    """
    The conversation loop.

    Each submitted message runs through a small LangGraph workflow: the user
    turn is appended as pending, the reply is streamed, and the exchange is
    then committed, rolled back, or ends the session. A failed request never
    leaves a dangling user turn behind.
    """

    def __init__(
        self,
        history: ConversationHistory,
        consumer: StreamConsumer,
        reader: MessageReader,
        sink: OutputSink,
        signal: CancellationSignal,
        max_history: int = 10,
        exit_command: str = "/exit",
    ):
        self.history = history
        self.consumer = consumer
        self.reader = reader
        self.sink = sink
        self.signal = signal
        self.max_history = max_history
        self.exit_command = exit_command
        self.phase = TurnPhase.AWAITING_INPUT
        self.last_usage: Optional[UsageStats] = None
        self.workflow = self._build_graph()
        self.app = self.workflow.compile()

    @classmethod
    def from_config(
        cls,
        app_config: DictConfig,
        transport: CompletionStream,
        console: Any,
        signal: CancellationSignal,
    ) -> TurnOrchestrator:
        """Wires the history and stream consumer from the `chat` section of app.yaml."""
        chat_config = app_config.app.chat
        return cls(
            history=ConversationHistory(chat_config.system_prompt),
            consumer=StreamConsumer(transport, console),
            reader=console,
            sink=console,
            signal=signal,
            max_history=chat_config.max_history_messages,
            exit_command=chat_config.exit_command,
        )

    def _build_graph(self) -> StateGraph:
        graph = StateGraph(ExchangeState)
        graph.add_node("pending_user", self.pending_user_node)
        graph.add_node("streaming", self.streaming_node)
        graph.add_node("commit", self.commit_node)
        graph.add_node("rollback", self.rollback_node)
        graph.add_node("stop", self.stop_node)

        graph.set_entry_point("pending_user")
        graph.add_edge("pending_user", "streaming")
        graph.add_conditional_edges(
            "streaming",
            self.decide_after_streaming,
            {"success": "commit", "error": "rollback", "cancelled": "stop"},
        )
        graph.add_edge("commit", END)
        graph.add_edge("rollback", END)
        graph.add_edge("stop", END)
        return graph

    def _set_phase(self, phase: TurnPhase) -> None:
        logger.debug(f"{self.phase.value} -> {phase.value}")
        self.phase = phase

    async def pending_user_node(self, state: ExchangeState) -> Dict[str, Any]:
        self._set_phase(TurnPhase.PENDING_USER)
        self.history.append(ChatTurn.user(state["user_message"]))
        return {"outcome": None}

    async def streaming_node(self, state: ExchangeState) -> Dict[str, Any]:
        """Streams the reply for the full history, pending user turn included."""
        self._set_phase(TurnPhase.STREAMING)
        self.sink.write_ai_header()
        try:
            with self.signal.watch_interrupts():
                result = await self.consumer.consume(self.history.all(), self.signal)
        except StreamCancelled:
            return {"outcome": "cancelled", "error": "Operation cancelled."}
        except TransportError as e:
            logger.warning(f"Request failed, rolling back the pending message: {e}")
            return {"outcome": "error", "error": f"Request failed: {e}"}
        return {"outcome": "success", "reply": result.text, "usage": result.usage}

    async def commit_node(self, state: ExchangeState) -> Dict[str, Any]:
        self.history.append(ChatTurn.assistant(state["reply"] or ""))
        self.history.trim(self.max_history)
        self.last_usage = state.get("usage")
        self.sink.display_usage(self.last_usage)
        self._set_phase(TurnPhase.COMMITTED)
        return {"reply": state["reply"]}

    async def rollback_node(self, state: ExchangeState) -> Dict[str, Any]:
        self.history.remove_last()
        self.sink.display_error(state["error"])
        self._set_phase(TurnPhase.ROLLED_BACK)
        return {"error": state["error"]}

    async def stop_node(self, state: ExchangeState) -> Dict[str, Any]:
        # The pending user turn stays; the history is discarded with the session.
        self.sink.display_error(state["error"])
        self._set_phase(TurnPhase.STOPPED)
        return {"error": state["error"]}

    def decide_after_streaming(self, state: ExchangeState) -> str:
        return state["outcome"]

    async def run_exchange(self, user_message: str) -> ExchangeState:
        """Runs one user message through append, stream and commit/rollback."""
        initial_state: ExchangeState = {
            "user_message": user_message,
            "reply": None,
            "usage": None,
            "outcome": None,
            "error": None,
        }
        return await self.app.ainvoke(initial_state)

    async def run(self) -> int:
        """
        Reads and answers messages until the exit command or a cancellation.

        Returns:
            The process exit code.
        """
        while not self.signal.is_triggered:
            self._set_phase(TurnPhase.AWAITING_INPUT)
            try:
                message = self.reader.read_message().strip()
            except (KeyboardInterrupt, EOFError):
                self.signal.trigger()
                self.sink.display_error("Operation cancelled.")
                break

            if message.lower() == self.exit_command.lower():
                logger.info("Exit command received.")
                break
            if not message:
                continue

            await self.run_exchange(message)
            if self.phase == TurnPhase.STOPPED:
                break

        self._set_phase(TurnPhase.STOPPED)
        return 0
