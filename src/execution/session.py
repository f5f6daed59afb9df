"""
Execution session records
"""

import asyncio
import enum
import random
import string
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional

from src.agents.registry import AgentType
from src.config.constants import EXECUTION_ID_PREFIX


class ExecutionStatus(str, enum.Enum):
    """Session lifecycle states. Everything but RUNNING is terminal."""
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({
    ExecutionStatus.COMPLETED,
    ExecutionStatus.CANCELLED,
    ExecutionStatus.FAILED,
})

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_execution_id() -> str:
    """exec_<epoch ms>_<9 random base36 chars>"""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{EXECUTION_ID_PREFIX}_{int(time.time() * 1000)}_{suffix}"


@dataclass
class ExecutionSession:
    """One admitted, possibly long-running agent task."""
    id: str
    agent: AgentType
    user_id: str
    started_at: datetime
    estimated_duration: int  # milliseconds
    status: ExecutionStatus = ExecutionStatus.RUNNING
    progress: int = 0
    current_task: str = ""
    ended_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def age_seconds(self, now: datetime) -> float:
        return (now - self.started_at).total_seconds()

    def snapshot(self) -> "ExecutionSession":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "agent": self.agent.value,
            "user_id": self.user_id,
            "started_at": self.started_at.isoformat(),
            "estimated_duration": self.estimated_duration,
            "status": self.status.value,
            "progress": self.progress,
            "current_task": self.current_task,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }


@dataclass
class QueueEntry:
    """A start request waiting for a free slot."""
    agent: AgentType
    estimated_duration: int
    future: "asyncio.Future[Optional[str]]"
    enqueued_at: datetime


class ExecutionEventType(str, enum.Enum):
    STARTED = "started"
    QUEUED = "queued"
    PROMOTED = "promoted"
    UPDATED = "updated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    REMOVED = "removed"


@dataclass
class ExecutionEvent:
    """Notification emitted by the manager on every lifecycle change."""
    type: ExecutionEventType
    session_id: Optional[str] = None
    agent: Optional[AgentType] = None
    queue_length: int = 0
    details: Dict[str, Any] = field(default_factory=dict)
