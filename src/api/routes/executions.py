"""
Execution session endpoints

POST /api/executions waits for admission: when both slots are busy the
request stays open until a slot frees or the server shuts down.
"""

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import AppServices, get_current_user, get_services
from src.api.schemas import (
    ExecutionListResponse,
    ExecutionSessionModel,
    FailExecutionRequest,
    StartExecutionRequest,
    StartExecutionResponse,
    UpdateExecutionRequest,
)
from src.execution.manager import ConcurrentExecutionManager
from src.services.users import UserIdentity


router = APIRouter(prefix="/api/executions", tags=["executions"])


def _manager(user: UserIdentity, services: AppServices) -> ConcurrentExecutionManager:
    return services.executions.get(user)


def _session_or_404(manager: ConcurrentExecutionManager, session_id: str) -> ExecutionSessionModel:
    session = manager.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Execution not found")
    return ExecutionSessionModel(**session.to_dict())


@router.get("", response_model=ExecutionListResponse)
async def list_executions(
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    manager = _manager(user, services)
    return ExecutionListResponse(
        sessions=[ExecutionSessionModel(**s.to_dict()) for s in manager.active_sessions],
        can_start_new=manager.can_start_new,
        queue_position=manager.get_queue_position(),
        max_concurrent=manager.max_concurrent,
    )


@router.post("", response_model=StartExecutionResponse)
async def start_execution(
    body: StartExecutionRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    manager = _manager(user, services)
    session_id = await manager.start_execution(body.agent, body.estimated_duration_ms)
    if session_id is None:
        return StartExecutionResponse()
    session = manager.get_session(session_id)
    return StartExecutionResponse(
        session_id=session_id,
        session=ExecutionSessionModel(**session.to_dict()) if session else None,
    )


@router.patch("/{session_id}", response_model=ExecutionSessionModel)
async def update_execution(
    session_id: str,
    body: UpdateExecutionRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    manager = _manager(user, services)
    _session_or_404(manager, session_id)
    manager.update_execution(session_id, **body.model_dump(exclude_none=True))
    return _session_or_404(manager, session_id)


@router.post("/{session_id}/cancel", response_model=ExecutionSessionModel)
async def cancel_execution(
    session_id: str,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    manager = _manager(user, services)
    _session_or_404(manager, session_id)
    manager.cancel_execution(session_id)
    return _session_or_404(manager, session_id)


@router.post("/{session_id}/complete", response_model=ExecutionSessionModel)
async def complete_execution(
    session_id: str,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    manager = _manager(user, services)
    _session_or_404(manager, session_id)
    manager.complete_execution(session_id)
    return _session_or_404(manager, session_id)


@router.post("/{session_id}/fail", response_model=ExecutionSessionModel)
async def fail_execution(
    session_id: str,
    body: FailExecutionRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    manager = _manager(user, services)
    _session_or_404(manager, session_id)
    manager.fail_execution(session_id, body.reason)
    return _session_or_404(manager, session_id)
