"""
Chat message persistence boundary

The routing core never writes conversation content; the HTTP layer hands
messages to a ChatMessageStore implementation.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from src.agents.registry import AgentType


@dataclass
class StoredMessage:
    user_id: str
    agent: AgentType
    role: str  # "user" | "assistant" | "system"
    content: str
    thread_id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ChatMessageStore(Protocol):
    def save_message(
        self,
        user_id: str,
        agent: AgentType,
        role: str,
        content: str,
        thread_id: Optional[str] = None,
    ) -> StoredMessage:
        ...


class InMemoryMessageStore:
    """Process-local message store, keyed by user id."""

    def __init__(self):
        self._messages: Dict[str, List[StoredMessage]] = {}

    def save_message(
        self,
        user_id: str,
        agent: AgentType,
        role: str,
        content: str,
        thread_id: Optional[str] = None,
    ) -> StoredMessage:
        message = StoredMessage(
            user_id=user_id,
            agent=AgentType(agent),
            role=role,
            content=content,
            thread_id=thread_id,
        )
        self._messages.setdefault(user_id, []).append(message)
        return message

    def list_messages(self, user_id: str, thread_id: Optional[str] = None) -> List[StoredMessage]:
        messages = self._messages.get(user_id, [])
        if thread_id is None:
            return list(messages)
        return [m for m in messages if m.thread_id == thread_id]
