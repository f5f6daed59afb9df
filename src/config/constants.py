"""
Application constants

Centralized constants used across the application.
"""

from typing import Dict, List, Set, Tuple

# ============================================================================
# Intent Keywords
# ============================================================================

# Agent id -> ordered (phrase, weight) pairs. Phrases are matched against the
# lowercased user message, so they must be lowercase.
DEFAULT_AGENT_KEYWORDS: Dict[str, List[Tuple[str, float]]] = {
    "lexi": [
        ("onboard", 1.0),
        ("getting started", 1.0),
        ("setup", 1.0),
        ("profile", 1.0),
        ("new", 1.0),
        ("help me start", 1.0),
        ("configure", 1.0),
        ("how to", 1.0),
        ("explain", 1.0),
        ("guide", 1.0),
        ("tier", 1.0),
        ("upgrade", 1.0),
        ("features", 1.0),
        ("platform", 1.0),
        ("account", 1.0),
        ("settings", 1.0),
        ("limits", 1.0),
        ("subscription", 1.0),
    ],
    "alex": [
        ("bid", 1.0),
        ("price", 1.0),
        ("cost", 1.0),
        ("estimate", 1.0),
        ("quote", 1.0),
        ("material", 1.0),
        ("labor", 1.0),
        ("calculate", 1.0),
        ("breakdown", 1.0),
        ("pricing", 1.0),
        ("project cost", 1.0),
        ("how much", 1.0),
        ("budget", 1.0),
        ("expense", 1.0),
        ("fee", 1.0),
        ("rate", 1.0),
        ("charge", 1.0),
    ],
    "rex": [
        ("lead", 1.0),
        ("search", 1.0),
        ("generate", 1.0),
        ("opportunities", 1.0),
        ("find work", 1.0),
        ("jobs", 1.0),
        ("clients", 1.0),
        ("projects", 1.0),
        ("contract", 1.0),
        ("hire", 1.0),
        ("gig", 1.0),
        ("work available", 1.0),
    ],
}

URGENCY_KEYWORDS: Set[str] = {"urgent", "asap", "immediately", "emergency", "rush", "quick"}


# ============================================================================
# Prompt Placeholders
# ============================================================================

NOT_SET = "Not set"
ORCHESTRATION_PREFIX = "[ORCHESTRATION CONTEXT]"


# ============================================================================
# Execution
# ============================================================================

EXECUTION_ID_PREFIX = "exec"
TIMEOUT_TASK_MESSAGE = "Execution timeout"
CANCELLED_TASK_MESSAGE = "Cancelled by user"
COMPLETED_TASK_MESSAGE = "Completed successfully"
