"""Core data models shared across buildgate components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import FrozenSet

ChangeSet = FrozenSet[str]

_HEADS_PREFIX = "refs/heads/"


@dataclass(frozen=True)
class RevisionRef:
    """A commit hash and the local ref it is fetched into."""

    hash: str
    local_ref: str

    @property
    def branch(self) -> str:
        """Short branch name, suitable as the initial branch of a fresh repo."""
        if self.local_ref.startswith(_HEADS_PREFIX):
            return self.local_ref[len(_HEADS_PREFIX):]
        return self.local_ref

    @property
    def refspec_target(self) -> str:
        if self.local_ref.startswith("refs/"):
            return self.local_ref
        return f"{_HEADS_PREFIX}{self.local_ref}"


@dataclass(frozen=True)
class BuildScope:
    """Dockerfile path and the context directory whose changes trigger a build."""

    dockerfile: str
    context_dir: str


class BuildDecision(Enum):
    BUILD = "build"
    SKIP = "skip"


@dataclass(frozen=True)
class BuildTarget:
    """Components of the image reference pushed in commit mode."""

    registry: str
    repo_prefix: str
    repo_suffix: str
    tag: str

    @property
    def destination(self) -> str:
        return f"{self.registry}{self.repo_prefix}{self.repo_suffix}:{self.tag}"


@dataclass(frozen=True)
class Materialized:
    """A checked-out working tree and the change set relevant to the build."""

    working_tree: Path
    target_commit: str
    change_set: ChangeSet


__all__ = [
    "BuildDecision",
    "BuildScope",
    "BuildTarget",
    "ChangeSet",
    "Materialized",
    "RevisionRef",
]
