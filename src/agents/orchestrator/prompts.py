"""
Contextual system-prompt preambles per target agent
"""

from src.agents.registry import AgentType, describe_tier
from src.agents.orchestrator.state import RoutingDecision, RoutingRequest
from src.config.constants import NOT_SET, ORCHESTRATION_PREFIX


def generate_contextual_prompt(decision: RoutingDecision, request: RoutingRequest) -> str:
    """
    Render the preamble passed as extra system context to the target agent.

    Profile fields fall back to "Not set" when absent; a missing tier is
    reported as the base tier.
    """
    profile = request.contractor_profile
    base_prompt = f"{ORCHESTRATION_PREFIX} {decision.reason}. {decision.context}."

    if decision.target_agent == AgentType.LEXI:
        completion = "Available" if profile else "Incomplete"
        return (
            f"{base_prompt} User may need guidance on platform features, onboarding, "
            f"or general assistance. Profile completion: {completion}."
        )

    location = (profile.location if profile else None) or NOT_SET

    if decision.target_agent == AgentType.ALEX:
        services = ", ".join(str(code) for code in profile.services) if profile and profile.services else NOT_SET
        return (
            f"{base_prompt} User is requesting bidding assistance or cost analysis. "
            f"Services: {services}. Location: {location}."
        )

    if decision.target_agent == AgentType.REX:
        tier = describe_tier(profile.tier if profile else None)
        return (
            f"{base_prompt} User wants lead generation or market insights. "
            f"Territory: {location}. Tier: {tier}."
        )

    return base_prompt
