from .chat_models import ChatTurn, Role, StreamResult, StreamUpdate, UsageStats

__all__ = ["ChatTurn", "Role", "StreamResult", "StreamUpdate", "UsageStats"]
