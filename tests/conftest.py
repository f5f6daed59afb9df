"""
Shared fixtures for router and execution tests
"""

import os

# Keep test runs from writing data/logs/app.log
os.environ.setdefault("LOG_TO_FILE", "false")

from datetime import datetime, timedelta, timezone

import pytest

from src.agents.registry import AgentType, SubscriptionTier
from src.agents.orchestrator import ContractorProfile, ConversationTurn, create_routing_request


class FakeClock:
    """Manually advanced aware clock."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scale_profile():
    return ContractorProfile(services=[101, 205], location="Oakland, CA", tier=SubscriptionTier.SCALE)


@pytest.fixture
def growth_profile():
    return ContractorProfile(services=[101], location="Fresno, CA", tier=SubscriptionTier.GROWTH)


@pytest.fixture
def make_request():
    """Build a RoutingRequest with readable defaults."""
    def _make(message, current_agent=None, active_chats=(), history_agents=(), profile=None):
        history = [ConversationTurn(agent=AgentType(a), message="...") for a in history_agents]
        return create_routing_request(
            user_message=message,
            current_agent=current_agent,
            active_chats=active_chats,
            conversation_history=history,
            contractor_profile=profile,
        )
    return _make
