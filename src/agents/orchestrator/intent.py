"""
Intent scoring - weighted keyword matching per agent

Deterministic and explainable: every score can be traced back to the
phrases that produced it, which is what hand-off messages show the user.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from src.agents.registry import AgentType
from src.agents.orchestrator.state import AGENT_INTENTS, Intent, IntentAnalysis, Urgency
from src.config.constants import DEFAULT_AGENT_KEYWORDS, URGENCY_KEYWORDS
from src.config.settings import settings
from src.utils.errors import KeywordMapError


class KeywordMap:
    """
    Validated mapping from agent to its ordered (phrase, weight) pairs.

    Raises KeywordMapError at construction if any agent is missing, has no
    phrases, or carries an empty/uppercase phrase or a weight outside (0, 1].
    """

    def __init__(self, keywords: Mapping[str, Sequence[Tuple[str, float]]]):
        self._keywords: Dict[AgentType, List[Tuple[str, float]]] = {}

        for raw_agent, phrases in keywords.items():
            try:
                agent = AgentType(raw_agent)
            except ValueError as e:
                raise KeywordMapError(f"Unknown agent in keyword map: {raw_agent!r}") from e
            self._keywords[agent] = self._validate_phrases(agent, phrases)

        missing = [a.value for a in AgentType if a not in self._keywords]
        if missing:
            raise KeywordMapError(f"Keyword map missing agents: {', '.join(missing)}")

    @staticmethod
    def _validate_phrases(agent: AgentType, phrases: Sequence[Tuple[str, float]]) -> List[Tuple[str, float]]:
        if not phrases:
            raise KeywordMapError(f"No keywords configured for {agent.value}")

        validated = []
        for phrase, weight in phrases:
            if not phrase or not phrase.strip():
                raise KeywordMapError(f"Empty keyword for {agent.value}")
            if phrase != phrase.lower():
                raise KeywordMapError(f"Keyword {phrase!r} for {agent.value} must be lowercase")
            if not 0 < weight <= 1:
                raise KeywordMapError(f"Keyword {phrase!r} for {agent.value} has weight {weight} outside (0, 1]")
            validated.append((phrase, float(weight)))
        return validated

    def phrases(self, agent: AgentType) -> List[Tuple[str, float]]:
        return list(self._keywords[agent])

    def agents(self) -> List[AgentType]:
        """Agents in declaration order of AgentType."""
        return [a for a in AgentType if a in self._keywords]


DEFAULT_KEYWORD_MAP = KeywordMap(DEFAULT_AGENT_KEYWORDS)


class IntentScorer:
    """Scores a message against every agent's keyword list."""

    def __init__(
        self,
        keyword_map: Optional[KeywordMap] = None,
        exact_match_score: Optional[float] = None,
        partial_match_score: Optional[float] = None,
        confidence_floor: Optional[float] = None,
        urgency_keywords: Optional[Iterable[str]] = None,
    ):
        self.keyword_map = keyword_map or DEFAULT_KEYWORD_MAP
        self.exact_match_score = exact_match_score if exact_match_score is not None else settings.exact_match_score
        self.partial_match_score = (
            partial_match_score if partial_match_score is not None else settings.partial_match_score
        )
        self.confidence_floor = confidence_floor if confidence_floor is not None else settings.intent_confidence_floor
        self.urgency_keywords = sorted(urgency_keywords if urgency_keywords is not None else URGENCY_KEYWORDS)

    def score_phrases(self, message: str, phrases: Sequence[Tuple[str, float]]) -> float:
        """
        Score one keyword list against a lowercased message.

        Exact phrase substring: exact_match_score * weight.
        Otherwise: fraction of phrase words contained in some message word,
        times partial_match_score * weight. Total capped at 1.0.
        """
        message_words = message.split()
        score = 0.0

        for phrase, weight in phrases:
            if phrase in message:
                score += self.exact_match_score * weight
                continue

            phrase_words = phrase.split()
            match_count = sum(
                1 for word in phrase_words
                if any(word in msg_word for msg_word in message_words)
            )
            score += (match_count / len(phrase_words)) * self.partial_match_score * weight

        return min(score, 1.0)

    def score(self, message: str) -> Dict[Intent, float]:
        lower_message = message.lower()
        return {
            AGENT_INTENTS[agent]: self.score_phrases(lower_message, self.keyword_map.phrases(agent))
            for agent in self.keyword_map.agents()
        }

    def matching_keywords(self, message: str) -> List[str]:
        """All phrases (every agent, declaration order) found verbatim in the message."""
        lower_message = message.lower()
        return [
            phrase
            for agent in self.keyword_map.agents()
            for phrase, _ in self.keyword_map.phrases(agent)
            if phrase in lower_message
        ]

    def detect_urgency(self, message: str) -> Urgency:
        lower_message = message.lower()
        if any(keyword in lower_message for keyword in self.urgency_keywords):
            return Urgency.HIGH
        return Urgency.MEDIUM

    def analyze(self, message: str) -> IntentAnalysis:
        """
        Analyze a message's intent.

        The primary intent is the first category holding the max score, but
        only when that score is strictly above the confidence floor;
        otherwise the message is "general".
        """
        scores = self.score(message)
        max_score = max(scores.values()) if scores else 0.0

        primary_intent = Intent.GENERAL
        if max_score > self.confidence_floor:
            primary_intent = next(intent for intent, value in scores.items() if value == max_score)

        analysis = IntentAnalysis(
            primary_intent=primary_intent,
            confidence=max_score,
            keywords=self.matching_keywords(message),
            urgency=self.detect_urgency(message),
            scores=scores,
        )
        logger.debug(
            f"Intent analysis: {analysis.primary_intent.value} "
            f"(confidence={analysis.confidence:.2f}, keywords={analysis.keywords}, urgency={analysis.urgency.value})"
        )
        return analysis
