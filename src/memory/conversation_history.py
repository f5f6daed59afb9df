"""
Bounded recent conversation history used as a routing signal
"""

from collections import deque
from datetime import datetime
from typing import Deque, List, Optional, Union

from src.agents.registry import AgentType
from src.agents.orchestrator.state import ConversationTurn
from src.config.settings import settings


class ConversationHistory:
    """
    Keeps the last N turns (most recent last).

    Only the agent of each turn matters for routing; the message text is
    kept for display and diagnostics.
    """

    def __init__(self, max_turns: Optional[int] = None):
        self.max_turns = max_turns if max_turns is not None else settings.conversation_history_max_turns
        self._turns: Deque[ConversationTurn] = deque(maxlen=self.max_turns)

    def add(
        self,
        agent: Union[AgentType, str],
        message: str,
        timestamp: Optional[datetime] = None,
    ) -> ConversationTurn:
        turn = ConversationTurn(agent=AgentType(agent), message=message)
        if timestamp is not None:
            turn.timestamp = timestamp
        self._turns.append(turn)
        return turn

    def recent(self, n: int) -> List[ConversationTurn]:
        """Last n turns, oldest first."""
        if n <= 0:
            return []
        return list(self._turns)[-n:]

    def turns(self) -> List[ConversationTurn]:
        return list(self._turns)

    def last_agent(self) -> Optional[AgentType]:
        return self._turns[-1].agent if self._turns else None

    def clear(self) -> None:
        self._turns.clear()

    def __len__(self) -> int:
        return len(self._turns)
