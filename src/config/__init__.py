"""
Configuration layer - Settings and constants
"""

from src.config.settings import settings, Settings, PROJECT_ROOT
from src.config.constants import DEFAULT_AGENT_KEYWORDS, URGENCY_KEYWORDS

__all__ = [
    "settings",
    "Settings",
    "PROJECT_ROOT",
    "DEFAULT_AGENT_KEYWORDS",
    "URGENCY_KEYWORDS",
]
