"""
Tests for the routing cascade: mention → intent → context → default
"""

import pytest

from src.agents.registry import AgentType
from src.agents.orchestrator import (
    Intent,
    IntentAnalysis,
    IntentScorer,
    KeywordMap,
    Orchestrator,
    RoutingRule,
    Urgency,
    orchestrate_message,
)


class StubScorer:
    """Returns a fixed analysis regardless of the message."""

    def __init__(self, intent, confidence, keywords=None):
        self.calls = 0
        self.analysis = IntentAnalysis(
            primary_intent=intent,
            confidence=confidence,
            keywords=keywords or [],
            urgency=Urgency.MEDIUM,
        )

    def analyze(self, message):
        self.calls += 1
        return self.analysis


@pytest.fixture
def orchestrator():
    return Orchestrator()


class TestMentionRule:

    def test_mention_beats_everything(self, make_request):
        scorer = StubScorer(Intent.LEADS, 0.99, ["lead"])
        orchestrator = Orchestrator(intent_scorer=scorer)
        request = make_request(
            "@alex what's the labor cost?",
            current_agent=AgentType.LEXI,
            active_chats=[AgentType.LEXI],
            history_agents=["rex"],
        )

        decision = orchestrator.orchestrate(request)

        assert decision.target_agent == AgentType.ALEX
        assert decision.rule == RoutingRule.MENTION
        assert decision.clean_message == "what's the labor cost?"
        assert decision.should_open_new_chat is True
        assert decision.reason == "Explicit @alex mention detected"
        assert scorer.calls == 0

    def test_mention_with_existing_thread(self, orchestrator, make_request):
        request = make_request("@alex any update?", active_chats=[AgentType.ALEX])
        decision = orchestrator.orchestrate(request)
        assert decision.should_open_new_chat is False


class TestIntentRule:

    def test_leads_scenario_routes_to_rex(self, orchestrator, make_request):
        decision = orchestrator.orchestrate(make_request("Hi, can you find me some leads in Oakland?"))

        assert decision.target_agent == AgentType.REX
        assert decision.rule == RoutingRule.INTENT
        assert decision.should_open_new_chat is True
        assert decision.clean_message == "Hi, can you find me some leads in Oakland?"
        assert decision.reason == "High confidence (95%) leads intent detected (keywords: lead)"
        assert decision.context == "Intent: leads, Keywords: lead"

    def test_confidence_at_threshold_does_not_route(self, make_request):
        orchestrator = Orchestrator(intent_scorer=StubScorer(Intent.BIDDING, 0.6, ["bid"]))
        decision = orchestrator.orchestrate(make_request("whatever"))
        assert decision.rule == RoutingRule.DEFAULT
        assert decision.target_agent == AgentType.LEXI

    def test_confidence_above_threshold_routes(self, make_request):
        orchestrator = Orchestrator(intent_scorer=StubScorer(Intent.BIDDING, 0.61, ["bid"]))
        decision = orchestrator.orchestrate(make_request("whatever"))
        assert decision.rule == RoutingRule.INTENT
        assert decision.target_agent == AgentType.ALEX
        assert "(61%)" in decision.reason

    def test_summed_scores_at_threshold_do_not_route(self, make_request):
        # two fully partial-matched phrases: 0.3 + 0.3 == 0.6 exactly
        keyword_map = KeywordMap({
            "lexi": [("setup", 1.0)],
            "alex": [("alpha beta", 1.0), ("gamma delta", 1.0)],
            "rex": [("lead", 1.0)],
        })
        orchestrator = Orchestrator(intent_scorer=IntentScorer(keyword_map=keyword_map))
        decision = orchestrator.orchestrate(make_request("alphas betas gammas deltas"))
        assert orchestrator.analyze_intent("alphas betas gammas deltas").confidence == 0.6
        assert decision.rule == RoutingRule.DEFAULT

    def test_general_intent_routes_to_lexi(self, make_request):
        orchestrator = Orchestrator(intent_scorer=StubScorer(Intent.GENERAL, 0.9))
        decision = orchestrator.orchestrate(make_request("hello"))
        assert decision.target_agent == AgentType.LEXI
        assert decision.rule == RoutingRule.INTENT

    def test_custom_threshold(self, make_request):
        orchestrator = Orchestrator(
            intent_scorer=StubScorer(Intent.LEADS, 0.5, ["lead"]),
            high_confidence_threshold=0.4,
        )
        assert orchestrator.orchestrate(make_request("x")).target_agent == AgentType.REX


class TestContextRules:

    def test_current_agent_with_open_thread(self, orchestrator, make_request):
        request = make_request(
            "ok thanks",
            current_agent=AgentType.REX,
            active_chats=[AgentType.REX, AgentType.ALEX],
            history_agents=["alex"],
        )
        decision = orchestrator.orchestrate(request)
        assert decision.target_agent == AgentType.REX
        assert decision.rule == RoutingRule.CURRENT_AGENT
        assert decision.should_open_new_chat is False
        assert decision.reason == "Continuing current conversation context"

    def test_current_agent_without_thread_falls_through(self, orchestrator, make_request):
        request = make_request("ok thanks", current_agent=AgentType.REX, active_chats=[AgentType.ALEX])
        decision = orchestrator.orchestrate(request)
        assert decision.rule == RoutingRule.DEFAULT

    def test_recent_history_scenario(self, orchestrator, make_request):
        request = make_request(
            "ok thanks",
            active_chats=[AgentType.ALEX],
            history_agents=["rex", "alex"],
        )
        decision = orchestrator.orchestrate(request)
        assert decision.target_agent == AgentType.ALEX
        assert decision.rule == RoutingRule.RECENT_HISTORY
        assert decision.should_open_new_chat is False
        assert decision.reason == "Following recent conversation thread"

    def test_only_most_recent_history_entry_counts(self, orchestrator, make_request):
        request = make_request(
            "ok thanks",
            active_chats=[AgentType.ALEX],
            history_agents=["alex", "rex"],
        )
        assert orchestrator.orchestrate(request).rule == RoutingRule.DEFAULT


class TestDefaultRule:

    def test_empty_request_defaults_to_lexi(self, orchestrator, make_request):
        decision = orchestrator.orchestrate(make_request("ok thanks"))
        assert decision.target_agent == AgentType.LEXI
        assert decision.rule == RoutingRule.DEFAULT
        assert decision.should_open_new_chat is True
        assert decision.reason == "Default routing to onboarding agent"
        assert decision.context == "General inquiry or unclear intent"

    def test_default_with_open_lexi_thread(self, orchestrator, make_request):
        decision = orchestrator.orchestrate(make_request("ok thanks", active_chats=[AgentType.LEXI]))
        assert decision.should_open_new_chat is False

    def test_empty_message_is_routed(self, orchestrator, make_request):
        assert orchestrator.orchestrate(make_request("")).target_agent == AgentType.LEXI


class TestRoute:

    def test_denied_access_carries_upgrade_prompt(self, orchestrator, make_request, growth_profile):
        routed = orchestrator.route(make_request("@rex find me leads", profile=growth_profile))

        assert routed.decision.target_agent == AgentType.REX
        assert routed.access.has_access is False
        assert routed.upgrade_prompt["data"]["agent"] == "rex"

    def test_granted_access_has_no_upgrade_prompt(self, orchestrator, make_request, scale_profile):
        routed = orchestrator.route(make_request("@rex find me leads", profile=scale_profile))
        assert routed.access.has_access is True
        assert routed.upgrade_prompt is None
        assert "Territory: Oakland, CA" in routed.system_prompt

    def test_orchestrate_message_uses_defaults(self, make_request):
        decision = orchestrate_message(make_request("@lexi hi"))
        assert decision.target_agent == AgentType.LEXI
        assert decision.clean_message == "hi"

    def test_decision_to_dict(self, orchestrator, make_request):
        data = orchestrator.orchestrate(make_request("@alex hi")).to_dict()
        assert data["target_agent"] == "alex"
        assert data["rule"] == "mention"
