"""
Orchestrator routing state - requests, decisions and intent analysis
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Optional

from src.agents.registry import AgentType, SubscriptionTier, DEFAULT_AGENT
from src.config.settings import settings


class Intent(str, enum.Enum):
    """Inferred purpose of a user message."""
    ONBOARDING = "onboarding"
    BIDDING = "bidding"
    LEADS = "leads"
    GENERAL = "general"


class Urgency(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RoutingRule(str, enum.Enum):
    """Which step of the routing cascade produced a decision."""
    MENTION = "mention"
    INTENT = "intent"
    CURRENT_AGENT = "current_agent"
    RECENT_HISTORY = "recent_history"
    DEFAULT = "default"


INTENT_AGENTS: Dict[Intent, AgentType] = {
    Intent.ONBOARDING: AgentType.LEXI,
    Intent.BIDDING: AgentType.ALEX,
    Intent.LEADS: AgentType.REX,
    Intent.GENERAL: DEFAULT_AGENT,
}

AGENT_INTENTS: Dict[AgentType, Intent] = {
    AgentType.LEXI: Intent.ONBOARDING,
    AgentType.ALEX: Intent.BIDDING,
    AgentType.REX: Intent.LEADS,
}


@dataclass
class ConversationTurn:
    """One entry of recent conversation history (most recent last)."""
    agent: AgentType
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ContractorProfile:
    """Summary of the contractor profile used for access checks and prompts."""
    services: List[int] = field(default_factory=list)
    location: Optional[str] = None
    tier: Optional[SubscriptionTier] = None


@dataclass
class RoutingRequest:
    """Everything the orchestrator needs to route one user message."""
    user_message: str
    current_agent: Optional[AgentType] = None
    active_chats: FrozenSet[AgentType] = frozenset()
    conversation_history: List[ConversationTurn] = field(default_factory=list)
    contractor_profile: Optional[ContractorProfile] = None


@dataclass
class RoutingDecision:
    """Result of routing one user message."""
    target_agent: AgentType
    reason: str
    should_open_new_chat: bool
    clean_message: str
    context: str
    rule: RoutingRule

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_agent": self.target_agent.value,
            "reason": self.reason,
            "should_open_new_chat": self.should_open_new_chat,
            "clean_message": self.clean_message,
            "context": self.context,
            "rule": self.rule.value,
        }


@dataclass
class IntentAnalysis:
    """Keyword scoring output for one message."""
    primary_intent: Intent
    confidence: float
    keywords: List[str]
    urgency: Urgency
    scores: Dict[Intent, float] = field(default_factory=dict)


@dataclass
class AccessResult:
    has_access: bool
    reason: Optional[str] = None


@dataclass
class RoutedMessage:
    """A routing decision bundled with its access check and system prompt."""
    decision: RoutingDecision
    access: AccessResult
    system_prompt: str
    upgrade_prompt: Optional[Dict[str, Any]] = None


def create_routing_request(
    user_message: str,
    current_agent: Optional[AgentType] = None,
    active_chats=(),
    conversation_history: Optional[List[ConversationTurn]] = None,
    contractor_profile: Optional[ContractorProfile] = None,
    history_limit: Optional[int] = None,
) -> RoutingRequest:
    """
    Build a RoutingRequest, normalizing agent ids and bounding history.

    Args:
        user_message: Raw user text
        current_agent: Agent of the currently focused thread, if any
        active_chats: Agents that already have an open thread
        conversation_history: Recent turns, most recent last
        contractor_profile: Optional profile summary
        history_limit: Keep only the last N turns (default: settings.routing_history_limit)
    """
    if history_limit is None:
        history_limit = settings.routing_history_limit

    history = list(conversation_history or [])
    if history_limit >= 0 and len(history) > history_limit:
        history = history[-history_limit:] if history_limit else []

    return RoutingRequest(
        user_message=user_message,
        current_agent=AgentType(current_agent) if current_agent else None,
        active_chats=frozenset(AgentType(a) for a in active_chats),
        conversation_history=history,
        contractor_profile=contractor_profile,
    )
