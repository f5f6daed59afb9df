"""
Nested chat contexts

Tags a conversation thread as main, bid, project or lead work and carries
the metadata used for welcome text and sidebar grouping. Contexts are
never mutated: moving a bid to a project produces a new context that
references the same underlying id.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.agents.registry import AgentType
from src.utils.errors import ContextConversionError


class ChatContextType(str, enum.Enum):
    MAIN = "main"
    BID = "bid"
    PROJECT = "project"
    LEAD = "lead"


class ContextStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    PENDING = "pending"


@dataclass(frozen=True)
class ContextMetadata:
    project_name: Optional[str] = None
    client_name: Optional[str] = None
    lead_source: Optional[str] = None
    estimated_value: Optional[float] = None
    status: Optional[ContextStatus] = None
    created_date: Optional[str] = None
    deadline: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "project_name": self.project_name,
            "client_name": self.client_name,
            "lead_source": self.lead_source,
            "estimated_value": self.estimated_value,
            "status": self.status.value if self.status else None,
            "created_date": self.created_date,
            "deadline": self.deadline,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class ChatContext:
    type: ChatContextType
    title: str
    context_id: Optional[str] = None  # lead, bid or project id
    metadata: ContextMetadata = field(default_factory=ContextMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "context_id": self.context_id,
            "title": self.title,
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class BidAnalysisStart:
    """What the caller needs to open a bid-analysis thread."""
    context: ChatContext
    agent: AgentType
    initial_message: str


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def main_chat_context() -> ChatContext:
    return ChatContext(type=ChatContextType.MAIN, title="Main Chat")


def create_bid_context(
    lead_id: str,
    project_name: str,
    client_name: str,
    estimated_value: Optional[float] = None,
) -> ChatContext:
    """Context for a bid started when the contractor pursues a lead."""
    return ChatContext(
        type=ChatContextType.BID,
        context_id=lead_id,
        title=f"{project_name} - {client_name}",
        metadata=ContextMetadata(
            project_name=project_name,
            client_name=client_name,
            estimated_value=estimated_value,
            status=ContextStatus.ACTIVE,
            created_date=_now_iso(),
        ),
    )


def create_project_context(project_id: str, project_name: str, client_name: str) -> ChatContext:
    """Context for ongoing work on an accepted bid."""
    return ChatContext(
        type=ChatContextType.PROJECT,
        context_id=project_id,
        title=f"Active: {project_name}",
        metadata=ContextMetadata(
            project_name=project_name,
            client_name=client_name,
            status=ContextStatus.ACTIVE,
            created_date=_now_iso(),
        ),
    )


def create_lead_context(title: str = "Lead Research", lead_source: Optional[str] = None) -> ChatContext:
    return ChatContext(
        type=ChatContextType.LEAD,
        title=title,
        metadata=ContextMetadata(lead_source=lead_source, status=ContextStatus.ACTIVE, created_date=_now_iso()),
    )


def start_bid_analysis(
    lead_id: str,
    project_name: Optional[str] = None,
    client_name: Optional[str] = None,
    estimated_value: Optional[float] = None,
) -> BidAnalysisStart:
    """Lead found → contractor pursues it → open an alex bid thread."""
    context = create_bid_context(
        lead_id=lead_id,
        project_name=project_name or "New Project",
        client_name=client_name or "New Client",
        estimated_value=estimated_value,
    )
    return BidAnalysisStart(
        context=context,
        agent=AgentType.ALEX,
        initial_message=(
            f"I'll help you analyze this bid for {context.metadata.project_name}. "
            "Let me review the lead details and create a comprehensive assessment."
        ),
    )


def convert_to_project(bid_context: ChatContext) -> ChatContext:
    """Bid approved → project context referencing the same id."""
    if bid_context.type != ChatContextType.BID:
        raise ContextConversionError(
            f"Can only convert bid contexts to projects, got {bid_context.type.value}"
        )

    return create_project_context(
        project_id=bid_context.context_id,
        project_name=bid_context.metadata.project_name,
        client_name=bid_context.metadata.client_name,
    )


_MAIN_WELCOME = {
    AgentType.LEXI: (
        "Welcome! I'm here to help with onboarding, platform guidance, and connecting "
        "you with the right specialists."
    ),
    AgentType.ALEX: (
        "I'm Alex, your bidding and cost analysis expert. Ready to help with project "
        "assessments and proposals."
    ),
    AgentType.REX: (
        "I'm Rex, your lead generation specialist. I'll help you find and research new "
        "business opportunities."
    ),
}

FALLBACK_WELCOME = "Hello! How can I help you today?"


def get_contextual_welcome_message(context: ChatContext, agent: AgentType) -> str:
    agent = AgentType(agent)
    project_name = context.metadata.project_name

    if context.type == ChatContextType.BID and agent == AgentType.ALEX:
        return (
            f"I'm ready to help you analyze the bid for {project_name}. I'll review the "
            "requirements, estimate costs, and help you create a competitive proposal."
        )
    if context.type == ChatContextType.PROJECT and agent == AgentType.ALEX:
        return (
            f"Let's manage the {project_name} project. I can help with progress tracking, "
            "change orders, and cost management."
        )
    if context.type == ChatContextType.LEAD and agent == AgentType.REX:
        return (
            "I'm researching leads for you. Let me know what type of projects you're "
            "interested in and I'll find the best opportunities."
        )
    if context.type == ChatContextType.MAIN:
        return _MAIN_WELCOME[agent]

    return FALLBACK_WELCOME
