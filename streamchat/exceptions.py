class StreamChatError(Exception):
    """Base class for all errors raised by the chat engine."""


class TransportError(StreamChatError):
    """
    A request to the inference endpoint failed (network, auth, unknown model...).

    Recoverable: the turn that triggered it is rolled back and the loop continues.
    """


class StreamCancelled(StreamChatError):
    """The cancellation signal fired while a reply was being streamed."""


class HistoryError(StreamChatError):
    """An operation would break the conversation history invariants."""


class ConfigurationError(StreamChatError):
    """Configuration could not be loaded or is incomplete."""
