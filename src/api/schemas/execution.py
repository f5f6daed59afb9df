"""
Execution session models for the API contract
"""

from pydantic import BaseModel, Field
from typing import Optional, List

from src.agents.registry import AgentType
from src.execution.session import ExecutionStatus


class StartExecutionRequest(BaseModel):
    agent: AgentType
    estimated_duration_ms: Optional[int] = Field(None, gt=0, description="Expected run time in milliseconds")


class UpdateExecutionRequest(BaseModel):
    progress: Optional[int] = Field(None, ge=0, le=100)
    current_task: Optional[str] = None
    status: Optional[ExecutionStatus] = None


class FailExecutionRequest(BaseModel):
    reason: str = Field("Execution failed", min_length=1)


class ExecutionSessionModel(BaseModel):
    id: str
    agent: AgentType
    user_id: str
    started_at: str
    estimated_duration: int
    status: ExecutionStatus
    progress: int
    current_task: str
    ended_at: Optional[str] = None


class StartExecutionResponse(BaseModel):
    """session_id is None when the request was drained before admission"""
    session_id: Optional[str] = None
    session: Optional[ExecutionSessionModel] = None


class ExecutionListResponse(BaseModel):
    sessions: List[ExecutionSessionModel]
    can_start_new: bool
    queue_position: int
    max_concurrent: int
