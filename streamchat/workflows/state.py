from enum import Enum
from typing import Literal, Optional, TypedDict

from streamchat.models import UsageStats


class TurnPhase(str, Enum):
    """Where the conversation loop currently is."""

    AWAITING_INPUT = "awaiting_input"
    PENDING_USER = "pending_user"
    STREAMING = "streaming"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    STOPPED = "stopped"


class ExchangeState(TypedDict):
    """
    Represents the state of a single user/assistant exchange.
    It is created when a message is submitted and discarded once the
    exchange is committed, rolled back, or the session stops.
    """

    # -- Input --
    user_message: str

    # -- Streaming Output --
    reply: Optional[str]
    usage: Optional[UsageStats]

    # -- Control Flow --
    outcome: Optional[Literal["success", "error", "cancelled"]]
    error: Optional[str]
