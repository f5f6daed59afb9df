"""
Per-user execution managers for the HTTP process
"""

from typing import Callable, Dict, Optional

from loguru import logger

from src.execution.manager import ConcurrentExecutionManager
from src.services.users import StaticUserProvider, UserIdentity


ManagerFactory = Callable[[UserIdentity], ConcurrentExecutionManager]


def _default_factory(identity: UserIdentity) -> ConcurrentExecutionManager:
    return ConcurrentExecutionManager(StaticUserProvider(identity))


class ExecutionManagerRegistry:
    """One ConcurrentExecutionManager per user id, created on first use."""

    def __init__(self, manager_factory: Optional[ManagerFactory] = None):
        self._factory = manager_factory or _default_factory
        self._managers: Dict[str, ConcurrentExecutionManager] = {}

    def get(self, identity: UserIdentity) -> ConcurrentExecutionManager:
        """Get (or create and start) the manager for a user. Must run inside the event loop."""
        manager = self._managers.get(identity.user_id)
        if manager is None:
            manager = self._factory(identity)
            manager.start()
            self._managers[identity.user_id] = manager
            logger.debug(f"Created execution manager for user {identity.user_id}")
        elif isinstance(manager.user_provider, StaticUserProvider):
            # Tier can change between requests (e.g. after an upgrade)
            manager.user_provider.identity = identity
        return manager

    def __len__(self) -> int:
        return len(self._managers)

    async def prune_idle(self) -> int:
        """
        Stop and forget managers with no sessions and no waiters.

        A user's next request creates a fresh manager, so nothing is lost.

        Returns:
            Number of managers removed
        """
        idle = [user_id for user_id, manager in self._managers.items() if manager.is_idle]
        for user_id in idle:
            manager = self._managers.pop(user_id)
            await manager.stop()
        if idle:
            logger.info(f"Pruned {len(idle)} idle execution manager(s)")
        return len(idle)

    async def close(self) -> None:
        for user_id, manager in list(self._managers.items()):
            await manager.stop()
            logger.debug(f"Stopped execution manager for user {user_id}")
        self._managers.clear()
