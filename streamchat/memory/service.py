import logging
from typing import Iterator, Optional, Tuple

from streamchat.exceptions import HistoryError
from streamchat.models import ChatTurn, Role

logger = logging.getLogger(__name__)


class ConversationHistory:
    """
    The ordered list of turns sent to the model on every request.

    The history always starts with exactly one system turn, which is set once
    when the history is created and survives every trim. Turns are stored in an
    immutable tuple that is replaced wholesale on every change, so a reference
    obtained from `all()` never changes under the caller.
    """

    def __init__(self, system_prompt: str):
        """
        Args:
            system_prompt: The instruction that conditions the assistant for the whole session.
        """
        self._turns: Tuple[ChatTurn, ...] = (ChatTurn.system(system_prompt),)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ChatTurn]:
        return iter(self._turns)

    @property
    def turns(self) -> Tuple[ChatTurn, ...]:
        return self._turns

    @property
    def system_turn(self) -> Optional[ChatTurn]:
        return next((t for t in self._turns if t.role == Role.SYSTEM), None)

    def all(self) -> Tuple[ChatTurn, ...]:
        """Returns the full ordered sequence, ready to be turned into a request."""
        return self._turns

    def append(self, turn: ChatTurn) -> None:
        """Adds a user or assistant turn to the end of the history."""
        if turn.role == Role.SYSTEM:
            raise HistoryError("The system turn is set when the history is created and cannot be appended.")
        self._turns = self._turns + (turn,)

    def remove_last(self) -> ChatTurn:
        """
        Removes and returns the final turn.

        Used to roll back a user turn whose request failed. Refuses to remove
        the system turn.
        """
        if not self._turns or self._turns[-1].role == Role.SYSTEM:
            raise HistoryError("There is no user or assistant turn to remove.")
        removed = self._turns[-1]
        self._turns = self._turns[:-1]
        return removed

    def trim(self, max_messages: int) -> None:
        """
        Keeps the system turn plus the last `max_messages` turns.

        The tail window is taken from the end of the full sequence before the
        system turn is put back in front, so the system turn never pushes a
        body turn out of the window. If the system turn falls inside the
        window it is still kept exactly once.

        Does nothing when the history already holds `max_messages + 1` turns or fewer.
        """
        if max_messages < 0:
            raise ValueError("max_messages must be >= 0.")

        count = len(self._turns)
        if count <= max_messages + 1:
            return

        tail = self._turns[count - max_messages:]
        system = self.system_turn

        if system is None:
            rebuilt = tail
        else:
            rebuilt = (system,) + tuple(t for t in tail if t is not system)

        self._turns = rebuilt
        logger.debug(f"Trimmed history from {count} to {len(rebuilt)} turns (max_messages={max_messages}).")
