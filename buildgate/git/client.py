"""Git capability used to materialize revisions."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from ..errors import CollaboratorError
from ..logging import get_logger


class VersionControl(Protocol):
    """Operations the materializer needs from a version-control backend."""

    def init(self, path: Path, default_branch: str) -> None: ...

    def add_remote(self, path: Path, name: str, url: str) -> None: ...

    def fetch(
        self,
        path: Path,
        remote: str,
        revision: str,
        local_ref: str,
        *,
        depth: Optional[int],
    ) -> None: ...

    def checkout(self, path: Path, local_ref: str) -> None: ...

    def resolve_commit(self, path: Path, revision: str) -> str: ...

    def parents(self, path: Path, commit: str) -> List[str]: ...

    def changed_paths(self, path: Path, old: str, new: str) -> List[str]: ...


class GitClient:
    """Drives the git CLI; every failure surfaces as a CollaboratorError."""

    def __init__(
        self,
        runner: Callable[..., str] | None = None,
        *,
        executable: str = "git",
    ) -> None:
        self._runner = runner or self._default_runner
        self.executable = executable
        self.logger = get_logger("git")

    def init(self, path: Path, default_branch: str) -> None:
        self._run("init", ["init", f"--initial-branch={default_branch}"], cwd=path)

    def add_remote(self, path: Path, name: str, url: str) -> None:
        self._run("add remote", ["remote", "add", name, url], cwd=path)

    def fetch(
        self,
        path: Path,
        remote: str,
        revision: str,
        local_ref: str,
        *,
        depth: Optional[int],
    ) -> None:
        """Fetch ``revision`` into ``local_ref``; ``depth=None`` fetches full history."""
        args = ["fetch", "--no-tags", "--update-head-ok"]
        if depth is not None:
            args.append(f"--depth={depth}")
        args.extend([remote, f"+{revision}:{local_ref}"])
        self._run(f"fetch {revision}", args, cwd=path)

    def checkout(self, path: Path, local_ref: str) -> None:
        self._run(f"checkout {local_ref}", ["checkout", "--force", local_ref], cwd=path)

    def resolve_commit(self, path: Path, revision: str) -> str:
        output = self._run(
            f"commit lookup {revision}",
            ["rev-parse", "--verify", f"{revision}^{{commit}}"],
            cwd=path,
            capture_output=True,
        )
        return output.strip()

    def parents(self, path: Path, commit: str) -> List[str]:
        output = self._run(
            f"parent lookup {commit}",
            ["rev-list", "--parents", "-n", "1", commit],
            cwd=path,
            capture_output=True,
        )
        # "<commit> <parent>..."; a shallow boundary commit reports no parents
        return output.split()[1:]

    def changed_paths(self, path: Path, old: str, new: str) -> List[str]:
        output = self._run(
            "diff",
            ["diff", "--name-only", "--no-renames", "-z", old, new],
            cwd=path,
            capture_output=True,
        )
        return [entry for entry in output.split("\0") if entry]

    # ------------------------------------------------------------------
    # Internals

    def _run(
        self,
        phase: str,
        args: Sequence[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        command = [self.executable, *args]
        self.logger.debug("Running %s in %s", " ".join(command), cwd)
        try:
            return self._runner(command, cwd=cwd, capture_output=capture_output)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() if isinstance(exc.stderr, str) else ""
            raise CollaboratorError(phase, detail or exc) from exc
        except OSError as exc:
            raise CollaboratorError(phase, exc) from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            # Paths in git output are raw bytes; decode them the way os.fsdecode does.
            encoding=sys.getfilesystemencoding(),
            errors="surrogateescape",
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


__all__ = ["GitClient", "VersionControl"]
