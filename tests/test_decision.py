"""Tests for the build decision engine."""

from __future__ import annotations

import pytest

from buildgate.decision import DecisionRule, decide, explain
from buildgate.models import BuildDecision


@pytest.mark.parametrize(
    "change_set",
    [frozenset(), frozenset({"docs/readme.md"}), frozenset({"Dockerfile", "src/main.py"})],
)
def test_empty_context_always_builds(change_set: frozenset) -> None:
    assert decide(change_set, "Dockerfile", "") is BuildDecision.BUILD
    assert decide(change_set, "Dockerfile", "   ") is BuildDecision.BUILD


def test_change_under_context_builds() -> None:
    assert decide({"context/sub/file.txt"}, "Dockerfile", "context") is BuildDecision.BUILD


def test_dockerfile_change_builds_outside_context() -> None:
    result = explain({"build/Dockerfile"}, "build/Dockerfile", "app")

    assert result.decision is BuildDecision.BUILD
    assert result.rule is DecisionRule.DOCKERFILE
    assert result.path == "build/Dockerfile"


def test_unrelated_changes_skip() -> None:
    assert decide({"docs/readme.md"}, "app/Dockerfile", "app") is BuildDecision.SKIP


def test_empty_change_set_with_context_skips() -> None:
    assert decide(frozenset(), "Dockerfile", "app") is BuildDecision.SKIP


def test_prefix_does_not_cross_directory_boundary() -> None:
    assert decide({"services/apiv2/x"}, "Dockerfile", "services/api") is BuildDecision.SKIP
    assert decide({"services/api-v2/x"}, "Dockerfile", "services/api/") is BuildDecision.SKIP


def test_file_named_like_context_dir_does_not_match() -> None:
    assert decide({"services/api"}, "Dockerfile", "services/api") is BuildDecision.SKIP


def test_inputs_are_trimmed() -> None:
    assert decide({"app/main.py"}, "Dockerfile", "  app  ") is BuildDecision.BUILD
    assert decide({"Dockerfile"}, " Dockerfile\n", "app") is BuildDecision.BUILD


def test_trailing_separator_is_not_doubled() -> None:
    result = explain({"app/main.py"}, "Dockerfile", "app/")

    assert result.decision is BuildDecision.BUILD
    assert result.rule is DecisionRule.CONTEXT


def test_dockerfile_match_is_exact() -> None:
    assert decide({"app/Dockerfile.dev"}, "app/Dockerfile", "svc") is BuildDecision.SKIP


def test_explain_reports_rule_for_each_outcome() -> None:
    assert explain({"a"}, "Dockerfile", "").rule is DecisionRule.EMPTY_CONTEXT
    assert explain({"docs/a.md"}, "Dockerfile", "app").rule is DecisionRule.NO_MATCH
    assert explain({"docs/a.md"}, "Dockerfile", "app").path is None
