"""
Agent registry - the fixed set of conversational agents and tier rules
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


class AgentType(str, enum.Enum):
    """Conversational agents a message can be routed to."""
    LEXI = "lexi"
    ALEX = "alex"
    REX = "rex"


class SubscriptionTier(str, enum.Enum):
    """Contractor subscription tiers."""
    GROWTH = "growth"
    SCALE = "scale"


DEFAULT_AGENT = AgentType.LEXI
DEFAULT_TIER = SubscriptionTier.GROWTH
PREMIUM_TIER = SubscriptionTier.SCALE


@dataclass(frozen=True)
class AgentProfile:
    """Static description of an agent persona."""
    agent: AgentType
    name: str
    description: str
    personality: str
    is_premium: bool
    context_aware: bool
    welcome_message: str


@dataclass(frozen=True)
class ThreadLimits:
    """Per-tier chat thread limits."""
    max_threads: int
    max_messages_per_thread: int


AGENT_PROFILES: Dict[AgentType, AgentProfile] = {
    AgentType.LEXI: AgentProfile(
        agent=AgentType.LEXI,
        name="Lexi the Liaison",
        description="Onboarding & Support",
        personality="Warm, helpful, educational - guides contractors through complex processes",
        is_premium=False,
        context_aware=True,
        welcome_message=(
            "Hi! I'm Lexi, your onboarding guide. How can I help you get started "
            "or navigate the platform today?"
        ),
    ),
    AgentType.ALEX: AgentProfile(
        agent=AgentType.ALEX,
        name="Alex the Assessor",
        description="Cost Analysis & Bidding",
        personality="Analytical, precise, data-driven - focuses on profitable project analysis",
        is_premium=True,
        context_aware=True,
        welcome_message=(
            "Hello! I'm Alex, your cost analysis specialist. Ready to analyze a "
            "project, create estimates, or research materials?"
        ),
    ),
    AgentType.REX: AgentProfile(
        agent=AgentType.REX,
        name="Rex the Retriever",
        description="Lead Generation & Research",
        personality="Methodical, thorough, strategic - finds and qualifies leads systematically",
        is_premium=True,
        context_aware=True,
        welcome_message=(
            "Hey there! I'm Rex, your lead generation expert. Let me help you find "
            "and qualify new opportunities in your area."
        ),
    ),
}

THREAD_LIMITS: Dict[SubscriptionTier, ThreadLimits] = {
    SubscriptionTier.GROWTH: ThreadLimits(max_threads=10, max_messages_per_thread=50),
    SubscriptionTier.SCALE: ThreadLimits(max_threads=30, max_messages_per_thread=200),
}


def get_agent_profile(agent: Union[AgentType, str]) -> AgentProfile:
    return AGENT_PROFILES[AgentType(agent)]


def is_premium_agent(agent: Union[AgentType, str]) -> bool:
    return get_agent_profile(agent).is_premium


def get_welcome_message(agent: Union[AgentType, str]) -> str:
    return get_agent_profile(agent).welcome_message


def resolve_tier(tier: Optional[Union[SubscriptionTier, str]]) -> SubscriptionTier:
    """Normalize an optional tier value; missing tiers count as the base tier."""
    if tier is None or tier == "":
        return DEFAULT_TIER
    return SubscriptionTier(tier)


def describe_tier(tier: Optional[Union[SubscriptionTier, str]]) -> str:
    """Tier label for user-facing text; unrecognised values are shown as given."""
    try:
        return resolve_tier(tier).value
    except ValueError:
        return str(tier)


def get_thread_limits(tier: Optional[Union[SubscriptionTier, str]]) -> ThreadLimits:
    return THREAD_LIMITS[resolve_tier(tier)]


def build_upgrade_prompt(agent: Union[AgentType, str]) -> Dict[str, Any]:
    """
    Build the upgrade prompt shown instead of routing to a locked agent.

    Returns:
        Dict with the user-facing message and a UI payload
    """
    profile = get_agent_profile(agent)
    return {
        "message": (
            f"{profile.name} is a Scale tier feature. Upgrade to access advanced "
            f"{profile.description.lower()} capabilities!"
        ),
        "type": "upgrade_prompt",
        "data": {
            "agent": profile.agent.value,
            "feature": profile.description,
            "tier": PREMIUM_TIER.value,
        },
    }
