"""
Orchestrator - Routes messages to the onboarding, bidding or lead agents
"""

from src.agents.orchestrator.agent import Orchestrator, orchestrate_message
from src.agents.orchestrator.access import validate_agent_access
from src.agents.orchestrator.intent import IntentScorer, KeywordMap
from src.agents.orchestrator.mentions import Mention, parse_explicit_mention
from src.agents.orchestrator.prompts import generate_contextual_prompt
from src.agents.orchestrator.state import (
    AccessResult,
    ContractorProfile,
    ConversationTurn,
    Intent,
    IntentAnalysis,
    RoutedMessage,
    RoutingDecision,
    RoutingRequest,
    RoutingRule,
    Urgency,
    create_routing_request,
)

__all__ = [
    "Orchestrator",
    "orchestrate_message",
    "validate_agent_access",
    "IntentScorer",
    "KeywordMap",
    "Mention",
    "parse_explicit_mention",
    "generate_contextual_prompt",
    "AccessResult",
    "ContractorProfile",
    "ConversationTurn",
    "Intent",
    "IntentAnalysis",
    "RoutedMessage",
    "RoutingDecision",
    "RoutingRequest",
    "RoutingRule",
    "Urgency",
    "create_routing_request",
]
