"""
API schemas for request/response models
"""

from src.api.schemas.chat import (
    AccessInfo,
    ChatContextModel,
    ConversationGroupModel,
    HealthResponse,
    RouteMessageRequest,
    RouteMessageResponse,
    StartBidRequest,
    StartBidResponse,
    ThreadListResponse,
    ThreadModel,
)
from src.api.schemas.execution import (
    ExecutionListResponse,
    ExecutionSessionModel,
    FailExecutionRequest,
    StartExecutionRequest,
    StartExecutionResponse,
    UpdateExecutionRequest,
)

__all__ = [
    "AccessInfo",
    "ChatContextModel",
    "ConversationGroupModel",
    "HealthResponse",
    "RouteMessageRequest",
    "RouteMessageResponse",
    "StartBidRequest",
    "StartBidResponse",
    "ThreadListResponse",
    "ThreadModel",
    "ExecutionListResponse",
    "ExecutionSessionModel",
    "FailExecutionRequest",
    "StartExecutionRequest",
    "StartExecutionResponse",
    "UpdateExecutionRequest",
]
