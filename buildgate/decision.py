"""Classify a change set against a dockerfile and context directory."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .models import BuildDecision


class DecisionRule(Enum):
    EMPTY_CONTEXT = "empty-context"
    DOCKERFILE = "dockerfile"
    CONTEXT = "context"
    NO_MATCH = "no-match"


@dataclass(frozen=True)
class DecisionReason:
    """Why a verdict was reached; used for log output only."""

    decision: BuildDecision
    rule: DecisionRule
    path: Optional[str] = None


def decide(change_set: Iterable[str], dockerfile: str, context_dir: str) -> BuildDecision:
    """Return BUILD if any changed path touches the dockerfile or the context dir."""
    return explain(change_set, dockerfile, context_dir).decision


def explain(change_set: Iterable[str], dockerfile: str, context_dir: str) -> DecisionReason:
    dockerfile = dockerfile.strip()
    context_dir = context_dir.strip()

    if not context_dir:
        return DecisionReason(BuildDecision.BUILD, DecisionRule.EMPTY_CONTEXT)

    # Without the separator "services/api" would also match "services/apiv2/".
    prefix = context_dir if context_dir.endswith("/") else f"{context_dir}/"

    for path in change_set:
        if path == dockerfile:
            return DecisionReason(BuildDecision.BUILD, DecisionRule.DOCKERFILE, path)
        if path.startswith(prefix):
            return DecisionReason(BuildDecision.BUILD, DecisionRule.CONTEXT, path)
    return DecisionReason(BuildDecision.SKIP, DecisionRule.NO_MATCH)


__all__ = ["DecisionReason", "DecisionRule", "decide", "explain"]
