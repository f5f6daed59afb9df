"""
Concurrent execution manager - per-user admission control for agent tasks

Single-threaded and event-loop driven. At most `max_concurrent` sessions
may be RUNNING at once; further start requests wait in a strict FIFO queue
and are promoted synchronously whenever a running session ends. A periodic
sweep fails sessions that outlive the execution timeout, so a session may
stay RUNNING for up to one sweep interval past it.
"""

import asyncio
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Dict, List, Optional, Union

from loguru import logger

from src.agents.registry import AgentType
from src.config.constants import (
    CANCELLED_TASK_MESSAGE,
    COMPLETED_TASK_MESSAGE,
    TIMEOUT_TASK_MESSAGE,
)
from src.config.settings import settings
from src.execution.session import (
    ExecutionEvent,
    ExecutionEventType,
    ExecutionSession,
    ExecutionStatus,
    QueueEntry,
    generate_execution_id,
)
from src.services.users import UserProvider


ExecutionListener = Callable[[ExecutionEvent], None]

MUTABLE_FIELDS = frozenset({"progress", "current_task", "status", "estimated_duration"})

_TERMINAL_EVENTS = {
    ExecutionStatus.COMPLETED: ExecutionEventType.COMPLETED,
    ExecutionStatus.CANCELLED: ExecutionEventType.CANCELLED,
    ExecutionStatus.FAILED: ExecutionEventType.FAILED,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConcurrentExecutionManager:
    """
    Admission control over one user's agent executions.

    Usage:
        manager = ConcurrentExecutionManager(StaticUserProvider(identity))
        async with manager:
            session_id = await manager.start_execution(AgentType.ALEX)
            manager.update_execution(session_id, progress=50, current_task="Pricing materials")
            manager.complete_execution(session_id)

    The manager is the only mutator of session state; readers get copies.
    """

    def __init__(
        self,
        user_provider: UserProvider,
        max_concurrent: Optional[int] = None,
        execution_timeout: Optional[float] = None,
        sweep_interval: Optional[float] = None,
        completion_grace: Optional[float] = None,
        default_estimated_duration_ms: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the manager.

        Args:
            user_provider: Source of the owning user's identity
            max_concurrent: Running sessions allowed at once (default: settings)
            execution_timeout: Seconds before a running session is failed by the sweep
            sweep_interval: Seconds between sweeps
            completion_grace: Seconds a completed session stays visible
            default_estimated_duration_ms: Estimate used when the caller gives none
            clock: Returns the current aware datetime (injectable for tests)
        """
        self.user_provider = user_provider
        self.max_concurrent = max_concurrent if max_concurrent is not None else settings.max_concurrent_executions
        self.execution_timeout = (
            execution_timeout if execution_timeout is not None else settings.execution_timeout_seconds
        )
        self.sweep_interval = (
            sweep_interval if sweep_interval is not None else settings.execution_sweep_interval_seconds
        )
        self.completion_grace = (
            completion_grace if completion_grace is not None else settings.completion_grace_seconds
        )
        self.default_estimated_duration_ms = (
            default_estimated_duration_ms
            if default_estimated_duration_ms is not None
            else settings.default_estimated_duration_ms
        )
        self._clock = clock or _utcnow

        self._sessions: Dict[str, ExecutionSession] = {}
        self._queue: Deque[QueueEntry] = deque()
        self._listeners: List[ExecutionListener] = []
        self._removal_handles: Dict[str, asyncio.TimerHandle] = {}
        self._sweeper_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def running_count(self) -> int:
        return sum(1 for s in self._sessions.values() if s.status == ExecutionStatus.RUNNING)

    @property
    def active_sessions(self) -> List[ExecutionSession]:
        """Copies of all tracked sessions, including terminal ones not yet removed."""
        return [s.snapshot() for s in self._sessions.values()]

    @property
    def can_start_new(self) -> bool:
        return self.running_count < self.max_concurrent

    def get_session(self, session_id: str) -> Optional[ExecutionSession]:
        session = self._sessions.get(session_id)
        return session.snapshot() if session else None

    def get_queue_position(self) -> int:
        """Number of start requests currently waiting."""
        return sum(1 for entry in self._queue if not entry.future.done())

    @property
    def is_idle(self) -> bool:
        """True when nothing is tracked or waiting."""
        return not self._sessions and not self._queue

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def add_listener(self, listener: ExecutionListener) -> Callable[[], None]:
        """Subscribe to lifecycle events. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event_type: ExecutionEventType, session: Optional[ExecutionSession] = None, **details) -> None:
        event = ExecutionEvent(
            type=event_type,
            session_id=session.id if session else None,
            agent=session.agent if session else details.pop("agent", None),
            queue_length=self.get_queue_position(),
            details=details,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Execution listener failed on {event_type.value}: {e}")

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    async def start_execution(
        self,
        agent: Union[AgentType, str],
        estimated_duration_ms: Optional[int] = None,
    ) -> Optional[str]:
        """
        Start an execution, waiting in the FIFO queue if all slots are taken.

        Returns:
            The new session id, or None when there is no authenticated owner
            (or the queue was drained on shutdown)
        """
        user = self.user_provider.get_current_user()
        if user is None:
            logger.warning("Cannot start execution: no authenticated user")
            return None

        agent = AgentType(agent)
        duration = estimated_duration_ms if estimated_duration_ms is not None else self.default_estimated_duration_ms

        if self.can_start_new:
            session = self._create_session(agent, duration, user.user_id)
            self._emit(ExecutionEventType.STARTED, session)
            return session.id

        entry = QueueEntry(
            agent=agent,
            estimated_duration=duration,
            future=asyncio.get_running_loop().create_future(),
            enqueued_at=self._clock(),
        )
        self._queue.append(entry)
        logger.info(
            f"Execution slots full ({self.running_count}/{self.max_concurrent}); "
            f"queued {agent.value} request at position {len(self._queue)}"
        )
        self._emit(ExecutionEventType.QUEUED, agent=agent)

        try:
            return await entry.future
        except asyncio.CancelledError:
            if entry in self._queue:
                self._queue.remove(entry)
                logger.info(f"Queued {agent.value} request abandoned by caller")
            elif entry.future.done() and not entry.future.cancelled() and entry.future.result() is not None:
                # Promoted before the caller resumed; nobody owns the session
                orphan_id = entry.future.result()
                logger.info(f"Promoted {agent.value} execution {orphan_id} abandoned by caller")
                self.cancel_execution(orphan_id)
            raise

    def _create_session(self, agent: AgentType, duration: int, user_id: str) -> ExecutionSession:
        session = ExecutionSession(
            id=generate_execution_id(),
            agent=agent,
            user_id=user_id,
            started_at=self._clock(),
            estimated_duration=duration,
            status=ExecutionStatus.RUNNING,
            progress=0,
            current_task=f"Starting {agent.value} execution...",
        )
        self._sessions[session.id] = session
        logger.info(
            f"Started execution {session.id} for {agent.value} "
            f"({self.running_count}/{self.max_concurrent} running)"
        )
        return session

    def _promote_queued(self) -> None:
        """Fill every free slot from the head of the queue."""
        while self._queue and self.running_count < self.max_concurrent:
            entry = self._queue.popleft()
            if entry.future.done():
                continue

            user = self.user_provider.get_current_user()
            if user is None:
                logger.warning(f"Dropping queued {entry.agent.value} request: no authenticated user")
                entry.future.set_result(None)
                continue

            session = self._create_session(entry.agent, entry.estimated_duration, user.user_id)
            entry.future.set_result(session.id)
            self._emit(ExecutionEventType.PROMOTED, session)

    # ------------------------------------------------------------------
    # Lifecycle mutators
    # ------------------------------------------------------------------

    def update_execution(self, session_id: str, **updates) -> bool:
        """
        Merge progress, current_task, status or estimated_duration into a session.

        No-op (returns False) when the session is unknown or already terminal.
        """
        session = self._sessions.get(session_id)
        if session is None or session.is_terminal:
            logger.debug(f"Ignoring update for missing or finished execution {session_id}")
            return False

        ignored = set(updates) - MUTABLE_FIELDS
        if ignored:
            logger.warning(f"Ignoring read-only execution fields: {', '.join(sorted(ignored))}")

        if "progress" in updates:
            session.progress = max(0, min(100, int(updates["progress"])))
        if "current_task" in updates:
            session.current_task = str(updates["current_task"])
        if "estimated_duration" in updates:
            session.estimated_duration = int(updates["estimated_duration"])

        status = updates.get("status")
        if status is not None and ExecutionStatus(status) != ExecutionStatus.RUNNING:
            self._mark_terminal(session, ExecutionStatus(status))
            return True

        self._emit(ExecutionEventType.UPDATED, session)
        return True

    def cancel_execution(self, session_id: str) -> bool:
        """Stop tracking a session as running. Does not interrupt external work."""
        return self._finish(session_id, ExecutionStatus.CANCELLED, CANCELLED_TASK_MESSAGE)

    def complete_execution(self, session_id: str) -> bool:
        """Mark a session completed; it is removed after the grace delay."""
        return self._finish(session_id, ExecutionStatus.COMPLETED, COMPLETED_TASK_MESSAGE, progress=100)

    def fail_execution(self, session_id: str, reason: str = "Execution failed") -> bool:
        return self._finish(session_id, ExecutionStatus.FAILED, reason)

    def _finish(
        self,
        session_id: str,
        status: ExecutionStatus,
        current_task: str,
        progress: Optional[int] = None,
    ) -> bool:
        session = self._sessions.get(session_id)
        if session is None or session.is_terminal:
            logger.debug(f"Ignoring {status.value} for missing or finished execution {session_id}")
            return False

        session.current_task = current_task
        if progress is not None:
            session.progress = progress
        self._mark_terminal(session, status)
        return True

    def _mark_terminal(self, session: ExecutionSession, status: ExecutionStatus) -> None:
        session.status = status
        session.ended_at = self._clock()
        logger.info(f"Execution {session.id} ({session.agent.value}) {status.value}: {session.current_task}")
        self._emit(_TERMINAL_EVENTS[status], session)

        if status == ExecutionStatus.COMPLETED:
            self._schedule_removal(session.id)
        self._promote_queued()

    def _schedule_removal(self, session_id: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop; execution {session_id} will be removed by the sweep")
            return
        self._removal_handles[session_id] = loop.call_later(self.completion_grace, self._remove_session, session_id)

    def _remove_session(self, session_id: str) -> None:
        handle = self._removal_handles.pop(session_id, None)
        if handle is not None:
            handle.cancel()
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.debug(f"Removed execution {session_id} ({session.status.value})")
            self._emit(ExecutionEventType.REMOVED, session)

    # ------------------------------------------------------------------
    # Timeout sweep
    # ------------------------------------------------------------------

    def sweep(self) -> List[str]:
        """
        Drop finished sessions and fail running ones past the timeout.

        Sessions that were terminal before this sweep are removed (completed
        ones only after their grace delay). Running sessions older than the
        execution timeout become FAILED and stay visible until the next sweep.

        Returns:
            Ids of sessions that timed out on this sweep
        """
        now = self._clock()

        for session in list(self._sessions.values()):
            if not session.is_terminal:
                continue
            if (
                session.status == ExecutionStatus.COMPLETED
                and session.ended_at is not None
                and (now - session.ended_at).total_seconds() < self.completion_grace
            ):
                continue
            self._remove_session(session.id)

        timed_out = []
        for session in list(self._sessions.values()):
            if session.status == ExecutionStatus.RUNNING and session.age_seconds(now) > self.execution_timeout:
                session.status = ExecutionStatus.FAILED
                session.current_task = TIMEOUT_TASK_MESSAGE
                session.ended_at = now
                timed_out.append(session.id)
                logger.warning(
                    f"Execution {session.id} ({session.agent.value}) timed out after "
                    f"{session.age_seconds(now):.0f}s"
                )
                self._emit(ExecutionEventType.TIMED_OUT, session)

        if timed_out:
            self._promote_queued()
        return timed_out

    async def _run_sweeper(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.sweep_interval)
                self.sweep()
            except asyncio.CancelledError:
                logger.debug("Execution sweeper cancelled")
                break
            except Exception as e:
                logger.error(f"Execution sweep failed: {e}")

    # ------------------------------------------------------------------
    # Startup / shutdown
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweeper_task is None or self._sweeper_task.done():
            self._sweeper_task = asyncio.get_running_loop().create_task(self._run_sweeper())
            logger.debug(f"Execution sweeper started (every {self.sweep_interval}s)")

    async def stop(self) -> None:
        """Stop the sweeper, cancel pending removals and drain the queue."""
        if self._sweeper_task is not None:
            self._sweeper_task.cancel()
            try:
                await self._sweeper_task
            except asyncio.CancelledError:
                pass
            self._sweeper_task = None

        for handle in self._removal_handles.values():
            handle.cancel()
        self._removal_handles.clear()

        self.drain_queue()

    def drain_queue(self) -> int:
        """Resolve every waiting start request with None. Returns how many were waiting."""
        drained = 0
        while self._queue:
            entry = self._queue.popleft()
            if not entry.future.done():
                entry.future.set_result(None)
                drained += 1
        if drained:
            logger.info(f"Drained {drained} queued execution request(s)")
        return drained

    async def __aenter__(self) -> "ConcurrentExecutionManager":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
