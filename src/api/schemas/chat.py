"""
Chat routing models for the API contract
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

from src.agents.registry import AgentType
from src.agents.orchestrator.state import RoutingRule
from src.memory.chat_context import ChatContextType


class RouteMessageRequest(BaseModel):
    """User message to route, plus the client's view of the conversation"""
    message: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="The user's message, optionally starting with an @agent mention"
    )
    current_agent: Optional[AgentType] = Field(None, description="Agent of the thread the user is looking at")
    services: List[int] = Field(default_factory=list, description="Contractor service codes")
    location: Optional[str] = Field(None, description="Contractor service area")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Hi, can you find me some leads in Oakland?"},
                {"message": "@alex what's the labor cost?", "current_agent": "lexi"},
            ]
        }
    }


class AccessInfo(BaseModel):
    has_access: bool
    reason: Optional[str] = None


class RouteMessageResponse(BaseModel):
    """
    Routing decision for one message

    Clients must check access.has_access before sending the message to the
    target agent; when it is False, show upgrade_prompt instead.
    """
    target_agent: AgentType
    reason: str
    should_open_new_chat: bool
    clean_message: str
    context: str
    rule: RoutingRule
    access: AccessInfo
    system_prompt: str
    upgrade_prompt: Optional[Dict[str, Any]] = None
    thread_id: Optional[str] = None
    welcome_message: Optional[str] = None


class ChatContextModel(BaseModel):
    type: ChatContextType
    context_id: Optional[str] = None
    title: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ThreadModel(BaseModel):
    id: str
    agent: AgentType
    title: str
    context: ChatContextModel
    message_count: int
    created_at: str
    updated_at: str
    is_active: bool
    priority: str


class ConversationGroupModel(BaseModel):
    title: str
    type: ChatContextType
    is_expanded: bool
    threads: List[ThreadModel]


class ThreadListResponse(BaseModel):
    groups: List[ConversationGroupModel]


class StartBidRequest(BaseModel):
    """Lead the contractor decided to pursue"""
    lead_id: str = Field(..., min_length=1)
    project_name: Optional[str] = None
    client_name: Optional[str] = None
    estimated_value: Optional[float] = Field(None, ge=0)


class StartBidResponse(BaseModel):
    thread: ThreadModel
    agent: AgentType
    initial_message: str
    welcome_message: str


class HealthResponse(BaseModel):
    """
    Health check response

    Attributes:
        status: Service health status
        service: Service name
        version: API version
    """
    status: str = Field(..., description="Health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="API version")
