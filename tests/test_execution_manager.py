"""
Tests for per-user concurrent execution admission control
"""

import asyncio
import re

import pytest

from src.agents.registry import AgentType, SubscriptionTier
from src.execution import (
    ConcurrentExecutionManager,
    ExecutionEventType,
    ExecutionManagerRegistry,
    ExecutionStatus,
)
from src.services.users import StaticUserProvider, UserIdentity


@pytest.fixture
def identity():
    return UserIdentity(user_id="contractor-1", tier=SubscriptionTier.SCALE)


@pytest.fixture
def provider(identity):
    return StaticUserProvider(identity)


@pytest.fixture
def manager(provider, clock):
    return ConcurrentExecutionManager(provider, clock=clock, completion_grace=0.01)


async def _queue(manager, agent):
    """Start a request that has to wait, and let it reach the queue."""
    task = asyncio.create_task(manager.start_execution(agent))
    await asyncio.sleep(0)
    return task


class TestAdmission:

    @pytest.mark.asyncio
    async def test_starts_immediately_when_slot_free(self, manager, clock):
        session_id = await manager.start_execution(AgentType.ALEX)

        session = manager.get_session(session_id)
        assert re.match(r"^exec_\d+_[a-z0-9]{9}$", session_id)
        assert session.status == ExecutionStatus.RUNNING
        assert session.user_id == "contractor-1"
        assert session.progress == 0
        assert session.started_at == clock.now
        assert session.estimated_duration == 120000

    @pytest.mark.asyncio
    async def test_custom_estimated_duration(self, manager):
        session_id = await manager.start_execution("rex", estimated_duration_ms=5000)
        assert manager.get_session(session_id).estimated_duration == 5000

    @pytest.mark.asyncio
    async def test_third_start_waits_for_free_slot(self, manager):
        first = await manager.start_execution(AgentType.ALEX)
        await manager.start_execution(AgentType.REX)
        assert manager.can_start_new is False

        waiter = await _queue(manager, AgentType.LEXI)
        assert not waiter.done()
        assert manager.get_queue_position() == 1
        assert manager.running_count == 2

        manager.complete_execution(first)

        third = await waiter
        assert manager.get_session(third).agent == AgentType.LEXI
        assert manager.running_count == 2
        assert manager.get_queue_position() == 0

    @pytest.mark.asyncio
    async def test_three_concurrent_starts(self, manager):
        tasks = [
            asyncio.create_task(manager.start_execution(agent))
            for agent in (AgentType.ALEX, AgentType.REX, AgentType.LEXI)
        ]
        done, pending = await asyncio.wait(tasks, timeout=0.05)

        assert len(done) == 2
        assert manager.running_count == 2
        assert manager.get_queue_position() == 1

        manager.complete_execution(tasks[0].result())
        assert manager.running_count == 2
        assert manager.get_queue_position() == 0
        assert manager.get_session(await pending.pop()).agent == AgentType.LEXI

    @pytest.mark.asyncio
    async def test_queue_is_fifo(self, manager):
        first = await manager.start_execution(AgentType.ALEX)
        second = await manager.start_execution(AgentType.ALEX)
        waiters = [
            await _queue(manager, agent)
            for agent in (AgentType.LEXI, AgentType.REX, AgentType.ALEX)
        ]
        assert manager.get_queue_position() == 3

        manager.cancel_execution(first)
        manager.cancel_execution(second)

        promoted = [await waiters[0], await waiters[1]]
        assert [manager.get_session(s).agent for s in promoted] == [AgentType.LEXI, AgentType.REX]
        assert not waiters[2].done()

        await manager.stop()
        assert await waiters[2] is None

    @pytest.mark.asyncio
    async def test_no_user_returns_none(self, clock):
        manager = ConcurrentExecutionManager(StaticUserProvider(None), clock=clock)
        assert await manager.start_execution(AgentType.LEXI) is None
        assert manager.active_sessions == []

    @pytest.mark.asyncio
    async def test_signed_out_while_queued(self, manager, provider):
        first = await manager.start_execution(AgentType.ALEX)
        await manager.start_execution(AgentType.ALEX)
        waiter = await _queue(manager, AgentType.LEXI)

        provider.sign_out()
        manager.complete_execution(first)

        assert await waiter is None
        assert manager.running_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_waiter_leaves_queue(self, manager):
        first = await manager.start_execution(AgentType.ALEX)
        await manager.start_execution(AgentType.ALEX)
        waiter = await _queue(manager, AgentType.REX)

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert manager.get_queue_position() == 0
        manager.complete_execution(first)
        assert manager.running_count == 1

    @pytest.mark.asyncio
    async def test_waiter_cancelled_after_promotion_frees_slot(self, manager):
        first = await manager.start_execution(AgentType.ALEX)
        await manager.start_execution(AgentType.ALEX)
        waiter = await _queue(manager, AgentType.REX)
        next_waiter = await _queue(manager, AgentType.LEXI)

        # Promotion resolves the waiter, but it is cancelled before it resumes
        manager.complete_execution(first)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        rex_sessions = [s for s in manager.active_sessions if s.agent == AgentType.REX]
        assert [s.status for s in rex_sessions] == [ExecutionStatus.CANCELLED]

        promoted = await next_waiter
        assert manager.get_session(promoted).agent == AgentType.LEXI
        assert manager.running_count == 2
        assert manager.get_queue_position() == 0


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, manager):
        session_id = await manager.start_execution(AgentType.ALEX)

        assert manager.update_execution(session_id, progress=40, current_task="Pricing lumber") is True

        session = manager.get_session(session_id)
        assert session.progress == 40
        assert session.current_task == "Pricing lumber"

    @pytest.mark.asyncio
    async def test_update_ignores_read_only_fields(self, manager):
        session_id = await manager.start_execution(AgentType.ALEX)
        manager.update_execution(session_id, user_id="someone-else", progress=10)
        session = manager.get_session(session_id)
        assert session.user_id == "contractor-1"
        assert session.progress == 10

    @pytest.mark.asyncio
    async def test_update_on_terminal_session_is_noop(self, manager):
        session_id = await manager.start_execution(AgentType.ALEX)
        manager.update_execution(session_id, progress=40)
        manager.cancel_execution(session_id)

        assert manager.update_execution(session_id, progress=90) is False

        session = manager.get_session(session_id)
        assert session.status == ExecutionStatus.CANCELLED
        assert session.progress == 40
        assert session.current_task == "Cancelled by user"

    @pytest.mark.asyncio
    async def test_update_unknown_session(self, manager):
        assert manager.update_execution("exec_0_missing", progress=1) is False

    @pytest.mark.asyncio
    async def test_status_update_frees_slot(self, manager):
        first = await manager.start_execution(AgentType.ALEX)
        await manager.start_execution(AgentType.ALEX)
        waiter = await _queue(manager, AgentType.REX)

        manager.update_execution(first, status="failed")

        assert manager.get_session(first).status == ExecutionStatus.FAILED
        assert manager.get_session(await waiter).agent == AgentType.REX

    @pytest.mark.asyncio
    async def test_complete_sets_progress_and_is_removed_after_grace(self, manager):
        session_id = await manager.start_execution(AgentType.ALEX)

        assert manager.complete_execution(session_id) is True
        session = manager.get_session(session_id)
        assert session.status == ExecutionStatus.COMPLETED
        assert session.progress == 100
        assert session.current_task == "Completed successfully"
        assert manager.running_count == 0

        await asyncio.sleep(0.05)
        assert manager.get_session(session_id) is None

    @pytest.mark.asyncio
    async def test_finish_twice_is_noop(self, manager):
        session_id = await manager.start_execution(AgentType.ALEX)
        assert manager.fail_execution(session_id, "Supplier API down") is True
        assert manager.complete_execution(session_id) is False
        assert manager.cancel_execution(session_id) is False
        assert manager.get_session(session_id).current_task == "Supplier API down"

    @pytest.mark.asyncio
    async def test_sessions_are_copies(self, manager):
        session_id = await manager.start_execution(AgentType.ALEX)
        manager.get_session(session_id).progress = 99
        manager.active_sessions[0].status = ExecutionStatus.FAILED

        session = manager.get_session(session_id)
        assert session.progress == 0
        assert session.status == ExecutionStatus.RUNNING


class TestSweep:

    @pytest.mark.asyncio
    async def test_times_out_after_limit(self, manager, clock):
        session_id = await manager.start_execution(AgentType.ALEX)

        clock.advance(600)
        assert manager.sweep() == []

        clock.advance(1)
        assert manager.sweep() == [session_id]

        session = manager.get_session(session_id)
        assert session.status == ExecutionStatus.FAILED
        assert session.current_task == "Execution timeout"
        assert session.ended_at == clock.now

        # dropped on the following sweep
        assert manager.sweep() == []
        assert manager.get_session(session_id) is None

    @pytest.mark.asyncio
    async def test_only_expired_sessions_time_out(self, manager, clock):
        old = await manager.start_execution(AgentType.ALEX)
        clock.advance(300)
        young = await manager.start_execution(AgentType.REX)
        manager.update_execution(young, progress=30)

        clock.advance(301)
        assert manager.sweep() == [old]

        session = manager.get_session(young)
        assert session.status == ExecutionStatus.RUNNING
        assert session.progress == 30

    @pytest.mark.asyncio
    async def test_timeout_promotes_waiting_request(self, manager, clock):
        await manager.start_execution(AgentType.ALEX)
        await manager.start_execution(AgentType.ALEX)
        waiter = await _queue(manager, AgentType.LEXI)

        clock.advance(601)
        assert len(manager.sweep()) == 2

        promoted = await waiter
        assert manager.get_session(promoted).status == ExecutionStatus.RUNNING
        assert manager.running_count == 1

    @pytest.mark.asyncio
    async def test_completed_kept_during_grace(self, provider, clock):
        manager = ConcurrentExecutionManager(provider, clock=clock, completion_grace=3)
        session_id = await manager.start_execution(AgentType.ALEX)
        manager.complete_execution(session_id)

        manager.sweep()
        assert manager.get_session(session_id) is not None

        clock.advance(3)
        manager.sweep()
        assert manager.get_session(session_id) is None
        await manager.stop()

    @pytest.mark.asyncio
    async def test_background_sweeper(self, provider, clock):
        async with ConcurrentExecutionManager(provider, clock=clock, sweep_interval=0.01) as manager:
            session_id = await manager.start_execution(AgentType.ALEX)
            clock.advance(700)
            await asyncio.sleep(0.05)
            assert manager.get_session(session_id) is None or (
                manager.get_session(session_id).status == ExecutionStatus.FAILED
            )
            assert manager.running_count == 0


class TestEvents:

    @pytest.mark.asyncio
    async def test_listener_receives_lifecycle(self, manager):
        events = []
        manager.add_listener(events.append)

        first = await manager.start_execution(AgentType.ALEX)
        await manager.start_execution(AgentType.ALEX)
        waiter = await _queue(manager, AgentType.REX)
        manager.update_execution(first, progress=10)
        manager.complete_execution(first)
        await waiter

        assert [e.type for e in events] == [
            ExecutionEventType.STARTED,
            ExecutionEventType.STARTED,
            ExecutionEventType.QUEUED,
            ExecutionEventType.UPDATED,
            ExecutionEventType.COMPLETED,
            ExecutionEventType.PROMOTED,
        ]
        assert events[2].agent == AgentType.REX
        assert events[2].queue_length == 1

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_manager(self, manager):
        def broken(event):
            raise RuntimeError("boom")

        manager.add_listener(broken)
        session_id = await manager.start_execution(AgentType.LEXI)
        assert manager.get_session(session_id) is not None

    @pytest.mark.asyncio
    async def test_unsubscribe(self, manager):
        events = []
        unsubscribe = manager.add_listener(events.append)
        unsubscribe()
        await manager.start_execution(AgentType.LEXI)
        assert events == []


class TestRegistry:

    @pytest.mark.asyncio
    async def test_one_manager_per_user(self):
        registry = ExecutionManagerRegistry()

        manager = registry.get(UserIdentity("u1"))
        assert registry.get(UserIdentity("u1", SubscriptionTier.SCALE)) is manager
        assert manager.user_provider.get_current_user().tier == SubscriptionTier.SCALE

        registry.get(UserIdentity("u2"))
        assert len(registry) == 2

        await registry.close()
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_close_drains_waiters(self):
        registry = ExecutionManagerRegistry()
        manager = registry.get(UserIdentity("u1"))
        await manager.start_execution(AgentType.ALEX)
        await manager.start_execution(AgentType.ALEX)
        waiter = await _queue(manager, AgentType.REX)

        await registry.close()
        assert await waiter is None

    @pytest.mark.asyncio
    async def test_prune_idle_keeps_busy_managers(self):
        registry = ExecutionManagerRegistry()
        registry.get(UserIdentity("u1"))
        busy = registry.get(UserIdentity("u2"))
        session_id = await busy.start_execution(AgentType.ALEX)

        assert await registry.prune_idle() == 1
        assert len(registry) == 1
        assert registry.get(UserIdentity("u2")) is busy

        busy.fail_execution(session_id)
        busy.sweep()
        assert busy.is_idle
        assert await registry.prune_idle() == 1
        assert len(registry) == 0

        assert registry.get(UserIdentity("u2")) is not busy
        await registry.close()
