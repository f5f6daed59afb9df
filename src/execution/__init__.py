"""
Execution layer - per-user admission control for agent tasks
"""

from src.execution.session import (
    ExecutionEvent,
    ExecutionEventType,
    ExecutionSession,
    ExecutionStatus,
    QueueEntry,
)
from src.execution.manager import ConcurrentExecutionManager
from src.execution.registry import ExecutionManagerRegistry

__all__ = [
    "ExecutionEvent",
    "ExecutionEventType",
    "ExecutionSession",
    "ExecutionStatus",
    "QueueEntry",
    "ConcurrentExecutionManager",
    "ExecutionManagerRegistry",
]
