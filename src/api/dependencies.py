"""
Request dependencies - caller identity and shared services
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from fastapi import Header, HTTPException, Request

from src.agents.orchestrator import Orchestrator
from src.agents.registry import SubscriptionTier, resolve_tier
from src.execution.registry import ExecutionManagerRegistry
from src.memory.conversation_history import ConversationHistory
from src.memory.threads import ThreadBook
from src.services.message_store import ChatMessageStore, InMemoryMessageStore
from src.services.users import UserIdentity


@dataclass
class UserWorkspace:
    """Per-user chat state kept by the process."""
    threads: ThreadBook
    history: ConversationHistory


@dataclass
class AppServices:
    """Long-lived collaborators shared by all requests."""
    orchestrator: Orchestrator = field(default_factory=Orchestrator)
    executions: ExecutionManagerRegistry = field(default_factory=ExecutionManagerRegistry)
    message_store: ChatMessageStore = field(default_factory=InMemoryMessageStore)
    workspaces: Dict[str, UserWorkspace] = field(default_factory=dict)

    def workspace(self, user_id: str) -> UserWorkspace:
        workspace = self.workspaces.get(user_id)
        if workspace is None:
            workspace = UserWorkspace(threads=ThreadBook(user_id), history=ConversationHistory())
            self.workspaces[user_id] = workspace
        return workspace


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_contractor_tier: Optional[str] = Header(None),
) -> UserIdentity:
    """
    Resolve the caller from headers set by the auth gateway.

    X-User-Id is required; X-Contractor-Tier defaults to the base tier.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")

    try:
        tier = resolve_tier(x_contractor_tier.strip().lower() if x_contractor_tier else None)
    except ValueError:
        allowed = ", ".join(t.value for t in SubscriptionTier)
        raise HTTPException(status_code=400, detail=f"Invalid contractor tier; expected one of: {allowed}")

    return UserIdentity(user_id=x_user_id.strip(), tier=tier)
