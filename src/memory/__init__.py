"""
Memory layer - chat contexts, threads and recent conversation history
"""

from src.memory.chat_context import (
    BidAnalysisStart,
    ChatContext,
    ChatContextType,
    ContextMetadata,
    ContextStatus,
    convert_to_project,
    create_bid_context,
    create_lead_context,
    create_project_context,
    get_contextual_welcome_message,
    main_chat_context,
    start_bid_analysis,
)
from src.memory.threads import (
    ChatThread,
    ConversationGroup,
    ThreadBook,
    ThreadPriority,
    group_threads_by_context,
)
from src.memory.conversation_history import ConversationHistory

__all__ = [
    "BidAnalysisStart",
    "ChatContext",
    "ChatContextType",
    "ContextMetadata",
    "ContextStatus",
    "convert_to_project",
    "create_bid_context",
    "create_lead_context",
    "create_project_context",
    "get_contextual_welcome_message",
    "main_chat_context",
    "start_bid_analysis",
    "ChatThread",
    "ConversationGroup",
    "ThreadBook",
    "ThreadPriority",
    "group_threads_by_context",
    "ConversationHistory",
]
