"""Check and build stages wired over the materializer, decision and executor."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import BuildGateConfig
from .decision import DecisionReason, DecisionRule, explain
from .executor import Launcher, commit_args, pr_args
from .git import GitClient, VersionControl
from .logging import get_logger
from .materializer import RevisionMaterializer
from .models import BuildDecision, BuildScope, BuildTarget, Materialized, RevisionRef
from .overrides import copy_override_files
from .status import is_build_skipped, write_skip_status, write_status


@dataclass(frozen=True)
class Evaluation:
    """Materialized tree plus the verdict computed from its change set."""

    materialized: Materialized
    reason: DecisionReason

    @property
    def decision(self) -> BuildDecision:
        return self.reason.decision


class BuildGate:
    """Coordinates the check stage (evaluate and record) and the build stage.

    The two stages may run in separate processes, communicating only through
    the status file, or back to back via ``run_pr`` / ``run_commit``.
    """

    def __init__(
        self,
        config: BuildGateConfig | None = None,
        *,
        vcs: VersionControl | None = None,
        launcher: Launcher | None = None,
    ) -> None:
        self.config = config or BuildGateConfig()
        vcs = vcs or GitClient(executable=self.config.git.executable)
        self.materializer = RevisionMaterializer(vcs, remote=self.config.git.remote)
        self.launcher = launcher or Launcher(self.config.executor.handoff)
        self.logger = get_logger("pipeline")

    # ------------------------------------------------------------------
    # Check stage

    def evaluate_pr(
        self,
        repo_url: str,
        clone_path: str,
        *,
        base: RevisionRef,
        pr: RevisionRef,
        scope: BuildScope,
    ) -> Evaluation:
        materialized = self.materializer.materialize_pr(
            repo_url, Path(clone_path), base=base, pr=pr
        )
        return self._evaluate(materialized, scope)

    def evaluate_commit(
        self,
        repo_url: str,
        clone_path: str,
        *,
        revision: RevisionRef,
        scope: BuildScope,
    ) -> Evaluation:
        materialized = self.materializer.materialize_commit(
            repo_url, Path(clone_path), revision=revision
        )
        return self._evaluate(materialized, scope)

    def check_pr(
        self,
        repo_url: str,
        clone_path: str,
        *,
        base: RevisionRef,
        pr: RevisionRef,
        scope: BuildScope,
        status_file: Path,
        override_dir: Optional[Path] = None,
    ) -> BuildDecision:
        evaluation = self.evaluate_pr(repo_url, clone_path, base=base, pr=pr, scope=scope)
        if evaluation.decision is BuildDecision.BUILD and override_dir is not None:
            copy_override_files(override_dir, Path(clone_path))
        self._record(evaluation.decision, status_file)
        return evaluation.decision

    def check_commit(
        self,
        repo_url: str,
        clone_path: str,
        *,
        revision: RevisionRef,
        scope: BuildScope,
        status_file: Path,
    ) -> BuildDecision:
        evaluation = self.evaluate_commit(repo_url, clone_path, revision=revision, scope=scope)
        self._record(evaluation.decision, status_file)
        return evaluation.decision

    # ------------------------------------------------------------------
    # Build stage

    def build_pr(self, clone_path: str, *, scope: BuildScope, status_file: Path) -> bool:
        """Hand off to the builder unless the check stage recorded a skip.

        Returns False when skipped; otherwise control does not come back.
        """
        if self._skipped(status_file):
            return False
        self._execute_pr(clone_path, scope)
        return True

    def build_commit(
        self,
        clone_path: str,
        *,
        scope: BuildScope,
        status_file: Path,
        target: BuildTarget,
    ) -> bool:
        if self._skipped(status_file):
            return False
        self._execute_commit(clone_path, scope, target)
        return True

    # ------------------------------------------------------------------
    # Single-process variant

    def run_pr(
        self,
        repo_url: str,
        clone_path: str,
        *,
        base: RevisionRef,
        pr: RevisionRef,
        scope: BuildScope,
        status_file: Path,
        override_dir: Optional[Path] = None,
    ) -> BuildDecision:
        decision = self.check_pr(
            repo_url,
            clone_path,
            base=base,
            pr=pr,
            scope=scope,
            status_file=status_file,
            override_dir=override_dir,
        )
        if decision is BuildDecision.BUILD:
            self._execute_pr(clone_path, scope)
        return decision

    def run_commit(
        self,
        repo_url: str,
        clone_path: str,
        *,
        revision: RevisionRef,
        scope: BuildScope,
        status_file: Path,
        target: BuildTarget,
    ) -> BuildDecision:
        decision = self.check_commit(
            repo_url, clone_path, revision=revision, scope=scope, status_file=status_file
        )
        if decision is BuildDecision.BUILD:
            self._execute_commit(clone_path, scope, target)
        return decision

    # ------------------------------------------------------------------
    # Internals

    def _evaluate(self, materialized: Materialized, scope: BuildScope) -> Evaluation:
        self.logger.debug("Changed files:")
        for path in sorted(materialized.change_set):
            self.logger.debug("  %s", path)
        reason = explain(materialized.change_set, scope.dockerfile, scope.context_dir)
        if reason.rule is DecisionRule.EMPTY_CONTEXT:
            self.logger.info("Using empty docker context dir; building")
        elif reason.rule is DecisionRule.DOCKERFILE:
            self.logger.info("Found changes in dockerfile %s", reason.path)
        elif reason.rule is DecisionRule.CONTEXT:
            self.logger.info("Found changes in docker context dir: %s", reason.path)
        else:
            self.logger.info("Did not find relevant changes")
        return Evaluation(materialized=materialized, reason=reason)

    def _record(self, decision: BuildDecision, status_file: Path) -> None:
        if decision is BuildDecision.SKIP:
            write_skip_status(status_file)
            return
        marker = self.config.status.success_marker
        if marker:
            self.logger.info("Setting %s in status file %s", marker, status_file)
            write_status(status_file, marker)

    def _skipped(self, status_file: Path) -> bool:
        if is_build_skipped(status_file):
            self.logger.info("Build is skipped. Exiting early")
            return True
        self.logger.info("Continuing build")
        return False

    def _execute_pr(self, clone_path: str, scope: BuildScope) -> None:
        executor = self.config.executor
        argv = pr_args(
            clone_path,
            scope.dockerfile,
            scope.context_dir,
            name=executor.name,
            extra_args=executor.extra_args,
        )
        self.launcher.handoff(executor.path, argv)

    def _execute_commit(self, clone_path: str, scope: BuildScope, target: BuildTarget) -> None:
        executor = self.config.executor
        argv = commit_args(
            clone_path,
            scope.dockerfile,
            scope.context_dir,
            target,
            name=executor.name,
            extra_args=executor.extra_args,
        )
        self.launcher.handoff(executor.path, argv)


__all__ = ["BuildGate", "Evaluation"]
