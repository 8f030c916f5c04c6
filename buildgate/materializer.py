"""Reproduce a two-revision comparison from a minimal-depth clone."""

from __future__ import annotations

from pathlib import Path

from .errors import CollaboratorError, InputError
from .git import GitClient, VersionControl
from .logging import get_logger
from .models import Materialized, RevisionRef

# The base side only needs its own tree to diff against.
BASE_FETCH_DEPTH = 1
# Full history for the PR side so checkout never hits a shallow boundary.
PR_FETCH_DEPTH = None
# The commit plus its immediate parent.
COMMIT_FETCH_DEPTH = 2


class RevisionMaterializer:
    """Turns a repo URL and revisions into a checked-out tree plus a change set.

    Nothing beyond the fetched depth is available afterwards; callers must not
    look further back in history.
    """

    def __init__(self, vcs: VersionControl | None = None, *, remote: str = "origin") -> None:
        self.vcs = vcs or GitClient()
        self.remote = remote
        self.logger = get_logger("materializer")

    def materialize_pr(
        self,
        repo_url: str,
        clone_path: Path,
        *,
        base: RevisionRef,
        pr: RevisionRef,
    ) -> Materialized:
        """Check out ``pr`` and diff it against ``base`` (two commits, not a range)."""
        self._prepare(repo_url, clone_path, default_branch=base.branch)

        self.logger.info("Fetching base revision %s into %s", base.hash, base.refspec_target)
        self.vcs.fetch(
            clone_path, self.remote, base.hash, base.refspec_target, depth=BASE_FETCH_DEPTH
        )
        self.logger.info("Fetching PR revision %s into %s", pr.hash, pr.refspec_target)
        self.vcs.fetch(clone_path, self.remote, pr.hash, pr.refspec_target, depth=PR_FETCH_DEPTH)
        self.vcs.checkout(clone_path, pr.branch)

        change_set = frozenset(self.vcs.changed_paths(clone_path, base.hash, pr.hash))
        return Materialized(working_tree=clone_path, target_commit=pr.hash, change_set=change_set)

    def materialize_commit(
        self,
        repo_url: str,
        clone_path: Path,
        *,
        revision: RevisionRef,
    ) -> Materialized:
        """Check out ``revision`` and diff it against its single parent."""
        self._prepare(repo_url, clone_path, default_branch=revision.branch)

        self.logger.info(
            "Fetching revision %s into %s", revision.hash, revision.refspec_target
        )
        self.vcs.fetch(
            clone_path,
            self.remote,
            revision.hash,
            revision.refspec_target,
            depth=COMMIT_FETCH_DEPTH,
        )
        self.vcs.checkout(clone_path, revision.branch)

        commit = self.vcs.resolve_commit(clone_path, revision.refspec_target)
        parents = self.vcs.parents(clone_path, commit)
        if len(parents) != 1:
            raise InputError(
                f"commit {commit} has {len(parents)} parents; exactly one is required"
            )

        change_set = frozenset(self.vcs.changed_paths(clone_path, parents[0], commit))
        return Materialized(working_tree=clone_path, target_commit=commit, change_set=change_set)

    def _prepare(self, repo_url: str, clone_path: Path, *, default_branch: str) -> None:
        try:
            clone_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CollaboratorError("clone path setup", exc) from exc
        self.logger.info("Initializing repository at %s", clone_path)
        self.vcs.init(clone_path, default_branch)
        self.vcs.add_remote(clone_path, self.remote, repo_url)


__all__ = [
    "BASE_FETCH_DEPTH",
    "COMMIT_FETCH_DEPTH",
    "PR_FETCH_DEPTH",
    "RevisionMaterializer",
]
