"""
Agent access validation by subscription tier
"""

from typing import Optional, Union

from src.agents.registry import (
    AgentType,
    SubscriptionTier,
    PREMIUM_TIER,
    describe_tier,
    is_premium_agent,
)
from src.agents.orchestrator.state import AccessResult, ContractorProfile


def validate_agent_access(
    target_agent: Union[AgentType, str],
    profile: Optional[Union[ContractorProfile, SubscriptionTier, str]] = None,
) -> AccessResult:
    """
    Check whether a contractor may talk to an agent.

    Denial is returned as data, never raised: callers show an upgrade
    prompt when has_access is False.

    Args:
        target_agent: Agent the message was routed to
        profile: Contractor profile, or just its tier (None means base tier)
    """
    agent = AgentType(target_agent)
    if not is_premium_agent(agent):
        return AccessResult(has_access=True)

    raw_tier = profile.tier if isinstance(profile, ContractorProfile) else profile
    # Unrecognised tiers are denied like any non-premium tier
    tier_label = describe_tier(raw_tier)
    if tier_label != PREMIUM_TIER.value:
        return AccessResult(
            has_access=False,
            reason=f"@{agent.value} requires Scale tier subscription. Current tier: {tier_label}",
        )

    return AccessResult(has_access=True)
