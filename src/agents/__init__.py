"""
Agents module.
Agent registry and the message orchestrator.
"""

from src.agents.registry import AgentType, SubscriptionTier, AgentProfile
from src.agents.orchestrator import Orchestrator

__all__ = ["AgentType", "SubscriptionTier", "AgentProfile", "Orchestrator"]
