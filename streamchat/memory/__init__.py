from .service import ConversationHistory

__all__ = ["ConversationHistory"]
