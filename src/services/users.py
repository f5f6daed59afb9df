"""
User/session provider - yields the owner id and tier for the current session
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from src.agents.registry import SubscriptionTier, DEFAULT_TIER


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated contractor identity."""
    user_id: str
    tier: SubscriptionTier = DEFAULT_TIER


class UserProvider(Protocol):
    def get_current_user(self) -> Optional[UserIdentity]:
        ...


class StaticUserProvider:
    """Provider bound to one identity (or to nobody, when signed out)."""

    def __init__(self, identity: Optional[UserIdentity] = None):
        self.identity = identity

    def get_current_user(self) -> Optional[UserIdentity]:
        return self.identity

    def sign_out(self) -> None:
        self.identity = None
