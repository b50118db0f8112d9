from .service import ConversationHistoryService
from .state import ConversationHistoryState

__all__ = ["ConversationHistoryService", "ConversationHistoryState"]
