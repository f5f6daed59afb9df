"""
Explicit "@agent" mention parsing
"""

import re
from dataclasses import dataclass
from typing import Optional

from src.agents.registry import AgentType


# A mention must start at a word boundary: "bob@rex.com" and "x@alex" are
# addresses, not mentions, even though the agent name follows the "@"
MENTION_PATTERN = re.compile(
    r"(?<!\w)@(" + "|".join(a.value for a in AgentType) + r")\b",
    re.IGNORECASE,
)


@dataclass
class Mention:
    agent: AgentType
    clean_message: str


def parse_explicit_mention(message: str) -> Optional[Mention]:
    """
    Detect the first "@agent" token in a message.

    Only the first mention is honored; any later mentions stay in the
    cleaned message as typed.

    Args:
        message: Raw user text

    Returns:
        Mention with the target agent and the message minus that token,
        or None if the message has no mention
    """
    match = MENTION_PATTERN.search(message)
    if not match:
        return None

    before = message[:match.start()].rstrip()
    after = message[match.end():].lstrip()
    clean_message = f"{before} {after}".strip()

    return Mention(agent=AgentType(match.group(1).lower()), clean_message=clean_message)
