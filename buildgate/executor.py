"""Argument construction and process handoff for the image builder."""

from __future__ import annotations

import os
import signal
import subprocess
import sys
from typing import Callable, List, Sequence

from .errors import HandoffError
from .logging import get_logger
from .models import BuildTarget


def pr_args(
    clone_path: str,
    dockerfile: str,
    context_dir: str,
    *,
    name: str = "executor",
    extra_args: Sequence[str] = (),
) -> List[str]:
    """Builder argv for a PR: build every layer, push nothing."""
    return [
        name,
        f"--dockerfile={clone_path}/{dockerfile}",
        f"--context=dir://{clone_path}/{context_dir}",
        "--no-push",
        *extra_args,
    ]


def commit_args(
    clone_path: str,
    dockerfile: str,
    context_dir: str,
    target: BuildTarget,
    *,
    name: str = "executor",
    extra_args: Sequence[str] = (),
) -> List[str]:
    """Builder argv for a commit: build and push to ``target.destination``."""
    return [
        name,
        f"--dockerfile={clone_path}/{dockerfile}",
        f"--context=dir://{clone_path}/{context_dir}",
        f"--destination={target.destination}",
        *extra_args,
    ]


class Launcher:
    """Transfers control to the builder binary.

    ``exec`` replaces the current process. ``spawn`` runs the builder as a
    child, waits, and exits with its return code; output is not touched.
    Neither mode returns after a successful launch. A builder killed by a
    signal in spawn mode takes this process down with the same signal.
    """

    def __init__(
        self,
        mode: str = "exec",
        *,
        execv: Callable[[str, Sequence[str]], object] | None = None,
        spawn: Callable[[str, Sequence[str]], int] | None = None,
        exit: Callable[[int], object] | None = None,
        kill: Callable[[int, int], object] | None = None,
        reset_signal: Callable[[int], object] | None = None,
    ) -> None:
        if mode not in ("exec", "spawn"):
            raise ValueError(f"unknown handoff mode: {mode}")
        self.mode = mode
        self._execv = execv or os.execv
        self._spawn = spawn or self._default_spawn
        self._exit = exit or sys.exit
        self._kill = kill or os.kill
        self._reset_signal = reset_signal or _default_signal_handler
        self.logger = get_logger("executor")

    def handoff(self, path: str, argv: Sequence[str]) -> None:
        self.logger.info("Starting image build using %s with args %s", path, list(argv))
        # Anything buffered would be lost once the process image is replaced.
        sys.stdout.flush()
        sys.stderr.flush()
        try:
            if self.mode == "exec":
                self._execv(path, list(argv))
                return
            returncode = self._spawn(path, list(argv))
        except OSError as exc:
            raise HandoffError(f"unable to start image builder {path}: {exc}") from exc
        if returncode < 0:
            signum = -returncode
            self.logger.info("Image builder was killed by signal %d", signum)
            if signum not in _UNCATCHABLE_SIGNALS:
                self._reset_signal(signum)
            self._kill(os.getpid(), signum)
            # Only reached when the signal does not terminate by default.
            returncode = 128 + signum
        self._exit(returncode)

    @staticmethod
    def _default_spawn(path: str, argv: Sequence[str]) -> int:
        # argv[0] is the program name the builder sees, path is what runs.
        return subprocess.call(list(argv), executable=path)


_UNCATCHABLE_SIGNALS = frozenset({signal.SIGKILL, signal.SIGSTOP})


def _default_signal_handler(signum: int) -> None:
    signal.signal(signum, signal.SIG_DFL)


__all__ = ["Launcher", "commit_args", "pr_args"]
