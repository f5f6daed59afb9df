"""
Orchestrator routing - strict priority cascade

1. explicit @mention
2. high-confidence intent
3. current agent with an open thread
4. most recent history agent with an open thread
5. default agent

Each rule fully short-circuits the ones after it.
"""

from typing import Optional

from loguru import logger

from src.agents.registry import DEFAULT_AGENT
from src.agents.orchestrator.intent import IntentScorer
from src.agents.orchestrator.mentions import parse_explicit_mention
from src.agents.orchestrator.state import (
    INTENT_AGENTS,
    IntentAnalysis,
    RoutingDecision,
    RoutingRequest,
    RoutingRule,
)


def _as_percent(confidence: float) -> int:
    """Round half-up to a whole percentage."""
    return int(confidence * 100 + 0.5)


def route_by_mention(request: RoutingRequest) -> Optional[RoutingDecision]:
    mention = parse_explicit_mention(request.user_message)
    if mention is None:
        return None

    return RoutingDecision(
        target_agent=mention.agent,
        reason=f"Explicit @{mention.agent.value} mention detected",
        should_open_new_chat=mention.agent not in request.active_chats,
        clean_message=mention.clean_message,
        context=f"User explicitly requested {mention.agent.value}",
        rule=RoutingRule.MENTION,
    )


def route_by_intent(
    request: RoutingRequest,
    analysis: IntentAnalysis,
    high_confidence_threshold: float,
) -> Optional[RoutingDecision]:
    if not analysis.confidence > high_confidence_threshold:
        return None

    target = INTENT_AGENTS[analysis.primary_intent]
    keywords = ", ".join(analysis.keywords)
    reason = (
        f"High confidence ({_as_percent(analysis.confidence)}%) "
        f"{analysis.primary_intent.value} intent detected"
    )
    if keywords:
        reason += f" (keywords: {keywords})"

    return RoutingDecision(
        target_agent=target,
        reason=reason,
        should_open_new_chat=target not in request.active_chats,
        clean_message=request.user_message,
        context=f"Intent: {analysis.primary_intent.value}, Keywords: {keywords}",
        rule=RoutingRule.INTENT,
    )


def route_by_context(request: RoutingRequest) -> Optional[RoutingDecision]:
    """Prefer conversation continuity over reclassification noise."""
    current = request.current_agent
    if current is not None and current in request.active_chats:
        return RoutingDecision(
            target_agent=current,
            reason="Continuing current conversation context",
            should_open_new_chat=False,
            clean_message=request.user_message,
            context=f"Maintaining conversation with {current.value}",
            rule=RoutingRule.CURRENT_AGENT,
        )

    if request.conversation_history:
        recent = request.conversation_history[-1].agent
        if recent in request.active_chats:
            return RoutingDecision(
                target_agent=recent,
                reason="Following recent conversation thread",
                should_open_new_chat=False,
                clean_message=request.user_message,
                context=f"Continuing with recently active {recent.value}",
                rule=RoutingRule.RECENT_HISTORY,
            )

    return None


def route_to_default(request: RoutingRequest) -> RoutingDecision:
    return RoutingDecision(
        target_agent=DEFAULT_AGENT,
        reason="Default routing to onboarding agent",
        should_open_new_chat=DEFAULT_AGENT not in request.active_chats,
        clean_message=request.user_message,
        context="General inquiry or unclear intent",
        rule=RoutingRule.DEFAULT,
    )


def make_routing_decision(
    request: RoutingRequest,
    scorer: IntentScorer,
    high_confidence_threshold: float,
) -> RoutingDecision:
    """Run the cascade. Always returns exactly one decision."""
    decision = route_by_mention(request)

    if decision is None:
        analysis = scorer.analyze(request.user_message)
        decision = (
            route_by_intent(request, analysis, high_confidence_threshold)
            or route_by_context(request)
            or route_to_default(request)
        )

    logger.info(
        f"Routed to {decision.target_agent.value} via {decision.rule.value}: {decision.reason}"
        f"{' (new thread)' if decision.should_open_new_chat else ''}"
    )
    return decision
