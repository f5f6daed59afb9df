"""
Orchestrator - routes a user message to lexi, alex or rex

Stateless service: construct it once per process (or per request) and
pass it where it is needed.
"""

from typing import Optional, Union

from loguru import logger

from src.agents.registry import AgentType, SubscriptionTier, build_upgrade_prompt
from src.config.settings import settings

from src.agents.orchestrator.access import validate_agent_access
from src.agents.orchestrator.intent import IntentScorer
from src.agents.orchestrator.prompts import generate_contextual_prompt
from src.agents.orchestrator.routing import make_routing_decision
from src.agents.orchestrator.state import (
    AccessResult,
    ContractorProfile,
    IntentAnalysis,
    RoutedMessage,
    RoutingDecision,
    RoutingRequest,
)


class Orchestrator:
    """
    Message router.

    Flow: mention → intent scoring → context fallback → default, followed by
    an access check the caller must honor before acting on the decision.
    """

    def __init__(
        self,
        intent_scorer: Optional[IntentScorer] = None,
        high_confidence_threshold: Optional[float] = None,
    ):
        self.intent_scorer = intent_scorer or IntentScorer()
        self.high_confidence_threshold = (
            high_confidence_threshold
            if high_confidence_threshold is not None
            else settings.high_confidence_threshold
        )

    def orchestrate(self, request: RoutingRequest) -> RoutingDecision:
        """Pick the target agent for a message. Never raises for ambiguous input."""
        return make_routing_decision(request, self.intent_scorer, self.high_confidence_threshold)

    def analyze_intent(self, message: str) -> IntentAnalysis:
        return self.intent_scorer.analyze(message)

    def generate_contextual_prompt(self, decision: RoutingDecision, request: RoutingRequest) -> str:
        return generate_contextual_prompt(decision, request)

    def validate_agent_access(
        self,
        target_agent: Union[AgentType, str],
        profile: Optional[Union[ContractorProfile, SubscriptionTier, str]] = None,
    ) -> AccessResult:
        return validate_agent_access(target_agent, profile)

    def route(self, request: RoutingRequest) -> RoutedMessage:
        """
        Orchestrate, check access and build the system prompt in one call.

        When access is denied the result carries an upgrade prompt instead of
        silently pointing at a locked agent.
        """
        decision = self.orchestrate(request)
        access = self.validate_agent_access(decision.target_agent, request.contractor_profile)
        system_prompt = self.generate_contextual_prompt(decision, request)

        upgrade_prompt = None
        if not access.has_access:
            logger.info(f"Access to {decision.target_agent.value} denied: {access.reason}")
            upgrade_prompt = build_upgrade_prompt(decision.target_agent)

        return RoutedMessage(
            decision=decision,
            access=access,
            system_prompt=system_prompt,
            upgrade_prompt=upgrade_prompt,
        )


def orchestrate_message(request: RoutingRequest) -> RoutingDecision:
    """Route a message with default settings."""
    return Orchestrator().orchestrate(request)
