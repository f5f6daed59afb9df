"""
Chat routing endpoints

Routes a message to an agent, opens threads as needed and manages the
bid → project context workflow. Agent execution itself happens elsewhere.
"""

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from src.agents.registry import AgentType, get_welcome_message
from src.agents.orchestrator import ContractorProfile, create_routing_request
from src.api.dependencies import AppServices, get_current_user, get_services
from src.api.schemas import (
    AccessInfo,
    ConversationGroupModel,
    RouteMessageRequest,
    RouteMessageResponse,
    StartBidRequest,
    StartBidResponse,
    ThreadListResponse,
    ThreadModel,
)
from src.memory.chat_context import (
    convert_to_project,
    get_contextual_welcome_message,
    start_bid_analysis,
)
from src.memory.threads import ThreadPriority, group_threads_by_context
from src.services.users import UserIdentity
from src.utils.errors import ContextConversionError


router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("/route", response_model=RouteMessageResponse)
async def route_message(
    body: RouteMessageRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    """
    Route a user message to lexi, alex or rex.

    Denied access is not an error: the response carries access.has_access=False
    and an upgrade prompt, and no thread is opened.
    """
    workspace = services.workspace(user.user_id)
    routing_request = create_routing_request(
        user_message=body.message,
        current_agent=body.current_agent,
        active_chats=workspace.threads.active_agents(),
        conversation_history=workspace.history.turns(),
        contractor_profile=ContractorProfile(
            services=body.services,
            location=body.location,
            tier=user.tier,
        ),
    )

    routed = services.orchestrator.route(routing_request)
    decision = routed.decision

    thread = None
    welcome_message = None
    if routed.access.has_access:
        if decision.should_open_new_chat:
            thread = workspace.threads.open_thread(decision.target_agent, user.tier)
            if thread is None:
                raise HTTPException(
                    status_code=403,
                    detail=f"Thread limit reached for {decision.target_agent.value}",
                )
            welcome_message = get_welcome_message(decision.target_agent)
        else:
            thread = workspace.threads.latest_thread(decision.target_agent)

        if thread is not None and not workspace.threads.record_message(thread.id, user.tier):
            raise HTTPException(
                status_code=403,
                detail=f"Message limit reached for this {decision.target_agent.value} thread",
            )
        workspace.history.add(decision.target_agent, decision.clean_message)
        services.message_store.save_message(
            user_id=user.user_id,
            agent=decision.target_agent,
            role="user",
            content=decision.clean_message,
            thread_id=thread.id if thread else None,
        )

    logger.info(
        f"User {user.user_id} → {decision.target_agent.value} "
        f"(access={'granted' if routed.access.has_access else 'denied'})"
    )

    return RouteMessageResponse(
        target_agent=decision.target_agent,
        reason=decision.reason,
        should_open_new_chat=decision.should_open_new_chat,
        clean_message=decision.clean_message,
        context=decision.context,
        rule=decision.rule,
        access=AccessInfo(has_access=routed.access.has_access, reason=routed.access.reason),
        system_prompt=routed.system_prompt,
        upgrade_prompt=routed.upgrade_prompt,
        thread_id=thread.id if thread else None,
        welcome_message=welcome_message,
    )


@router.get("/threads", response_model=ThreadListResponse)
async def list_threads(
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    """Open threads grouped by context for the sidebar"""
    threads = services.workspace(user.user_id).threads.threads()
    groups = [
        ConversationGroupModel(
            title=group.title,
            type=group.type,
            is_expanded=group.is_expanded,
            threads=[ThreadModel(**t.to_dict()) for t in group.threads],
        )
        for group in group_threads_by_context(threads)
    ]
    return ThreadListResponse(groups=groups)


@router.get("/agents")
async def agent_thread_status(
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    """Per-agent thread usage and limits for the caller's tier"""
    threads = services.workspace(user.user_id).threads
    return {agent.value: threads.thread_status(agent, user.tier) for agent in AgentType}


@router.post("/threads/bid", response_model=StartBidResponse)
async def start_bid_thread(
    body: StartBidRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    """Open an alex bid-analysis thread for a lead the contractor is pursuing"""
    start = start_bid_analysis(
        lead_id=body.lead_id,
        project_name=body.project_name,
        client_name=body.client_name,
        estimated_value=body.estimated_value,
    )

    workspace = services.workspace(user.user_id)
    thread = workspace.threads.open_thread(
        start.agent,
        user.tier,
        context=start.context,
        priority=ThreadPriority.HIGH,
    )
    if thread is None:
        raise HTTPException(status_code=403, detail=f"Cannot open a {start.agent.value} thread on this tier")

    services.message_store.save_message(
        user_id=user.user_id,
        agent=start.agent,
        role="assistant",
        content=start.initial_message,
        thread_id=thread.id,
    )
    logger.info(f"Started bid analysis for lead {body.lead_id} in thread {thread.id}")

    return StartBidResponse(
        thread=ThreadModel(**thread.to_dict()),
        agent=start.agent,
        initial_message=start.initial_message,
        welcome_message=get_contextual_welcome_message(start.context, start.agent),
    )


@router.post("/threads/{thread_id}/convert", response_model=ThreadModel)
async def convert_thread_to_project(
    thread_id: str,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    """Accepted bid → active project context on the same thread"""
    threads = services.workspace(user.user_id).threads
    thread = threads.get(thread_id)
    if thread is None:
        raise HTTPException(status_code=404, detail="Thread not found")

    try:
        project_context = convert_to_project(thread.context)
    except ContextConversionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    updated = threads.replace_context(thread_id, project_context)
    logger.info(f"Converted thread {thread_id} to project {project_context.context_id}")
    return ThreadModel(**updated.to_dict())
