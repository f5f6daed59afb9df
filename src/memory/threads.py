"""
Chat threads - per-user open threads, tier limits and sidebar grouping
"""

import enum
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Optional, Union

from loguru import logger

from src.agents.registry import (
    AgentType,
    SubscriptionTier,
    PREMIUM_TIER,
    get_agent_profile,
    get_thread_limits,
    resolve_tier,
)
from src.memory.chat_context import ChatContext, ChatContextType, main_chat_context


class ThreadPriority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


_PRIORITY_ORDER = {ThreadPriority.HIGH: 3, ThreadPriority.MEDIUM: 2, ThreadPriority.LOW: 1}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ChatThread:
    id: str
    agent: AgentType
    title: str
    context: ChatContext = field(default_factory=main_chat_context)
    message_count: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    is_active: bool = True
    priority: ThreadPriority = ThreadPriority.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "agent": self.agent.value,
            "title": self.title,
            "context": self.context.to_dict(),
            "message_count": self.message_count,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "is_active": self.is_active,
            "priority": self.priority.value,
        }


@dataclass
class ConversationGroup:
    title: str
    type: ChatContextType
    is_expanded: bool
    threads: List[ChatThread] = field(default_factory=list)


# Sidebar order: (context type, title, expanded by default)
_GROUP_LAYOUT = [
    (ChatContextType.MAIN, "Main Chat", True),
    (ChatContextType.BID, "Active Bids", True),
    (ChatContextType.PROJECT, "Current Projects", False),
    (ChatContextType.LEAD, "Lead Research", False),
]


def group_threads_by_context(threads: List[ChatThread]) -> List[ConversationGroup]:
    """
    Group threads for the sidebar.

    Within a group: higher priority first, then most recently updated.
    Empty groups are dropped.
    """
    groups = {
        context_type: ConversationGroup(title=title, type=context_type, is_expanded=expanded)
        for context_type, title, expanded in _GROUP_LAYOUT
    }

    for thread in threads:
        groups[thread.context.type].threads.append(thread)

    for group in groups.values():
        group.threads.sort(
            key=lambda t: (_PRIORITY_ORDER[t.priority], t.updated_at.timestamp()),
            reverse=True,
        )

    return [group for group in groups.values() if group.threads]


class ThreadBook:
    """
    One user's chat threads.

    Open (active) threads determine which agents count as "already has a
    thread" when routing. Thread and message counts are capped per tier.
    """

    def __init__(self, user_id: str):
        self.user_id = user_id
        self._threads: Dict[str, ChatThread] = {}

    def get(self, thread_id: str) -> Optional[ChatThread]:
        return self._threads.get(thread_id)

    def threads(self, include_closed: bool = False) -> List[ChatThread]:
        return [t for t in self._threads.values() if include_closed or t.is_active]

    def active_agents(self) -> FrozenSet[AgentType]:
        return frozenset(t.agent for t in self._threads.values() if t.is_active)

    def thread_count(self, agent: AgentType) -> int:
        return sum(1 for t in self._threads.values() if t.is_active and t.agent == agent)

    def latest_thread(self, agent: AgentType) -> Optional[ChatThread]:
        candidates = [t for t in self._threads.values() if t.is_active and t.agent == agent]
        return max(candidates, key=lambda t: t.updated_at, default=None)

    def can_start_new_thread(
        self,
        agent: Union[AgentType, str],
        tier: Optional[Union[SubscriptionTier, str]] = None,
    ) -> bool:
        agent = AgentType(agent)
        if get_agent_profile(agent).is_premium and resolve_tier(tier) != PREMIUM_TIER:
            return False
        return self.thread_count(agent) < get_thread_limits(tier).max_threads

    def thread_status(
        self,
        agent: Union[AgentType, str],
        tier: Optional[Union[SubscriptionTier, str]] = None,
    ) -> Dict[str, Any]:
        agent = AgentType(agent)
        profile = get_agent_profile(agent)
        current = self.thread_count(agent)
        max_threads = get_thread_limits(tier).max_threads
        return {
            "agent": profile.name,
            "personality": profile.personality,
            "context_aware": profile.context_aware,
            "is_premium": profile.is_premium,
            "current_threads": current,
            "max_threads": max_threads,
            "threads_remaining": max_threads - current,
            "can_start_new": self.can_start_new_thread(agent, tier),
            "needs_cleanup": current >= max_threads,
        }

    def open_thread(
        self,
        agent: Union[AgentType, str],
        tier: Optional[Union[SubscriptionTier, str]] = None,
        context: Optional[ChatContext] = None,
        title: Optional[str] = None,
        priority: ThreadPriority = ThreadPriority.MEDIUM,
    ) -> Optional[ChatThread]:
        """
        Open a new thread.

        Returns:
            The thread, or None when the tier's premium gate or thread limit blocks it
        """
        agent = AgentType(agent)
        if not self.can_start_new_thread(agent, tier):
            logger.info(f"User {self.user_id} cannot open another {agent.value} thread")
            return None

        context = context or main_chat_context()
        thread = ChatThread(
            id=str(uuid.uuid4()),
            agent=agent,
            title=title or context.title,
            context=context,
            priority=priority,
        )
        self._threads[thread.id] = thread
        logger.debug(f"Opened {agent.value} thread {thread.id} ({context.type.value}) for user {self.user_id}")
        return thread

    def record_message(self, thread_id: str, tier: Optional[Union[SubscriptionTier, str]] = None) -> bool:
        """Count a message against a thread. False if missing, closed or full."""
        thread = self._threads.get(thread_id)
        if thread is None or not thread.is_active:
            return False
        if thread.message_count >= get_thread_limits(tier).max_messages_per_thread:
            logger.info(f"Thread {thread_id} reached its message limit")
            return False

        thread.message_count += 1
        thread.updated_at = _utcnow()
        return True

    def replace_context(self, thread_id: str, context: ChatContext) -> Optional[ChatThread]:
        thread = self._threads.get(thread_id)
        if thread is None:
            return None
        updated = replace(thread, context=context, title=context.title, updated_at=_utcnow())
        self._threads[thread_id] = updated
        return updated

    def close_thread(self, thread_id: str) -> bool:
        thread = self._threads.get(thread_id)
        if thread is None or not thread.is_active:
            return False
        thread.is_active = False
        return True
