"""Error types raised by buildgate components."""

from __future__ import annotations


class BuildGateError(RuntimeError):
    """Base class for failures that end an invocation with a non-zero exit."""


class InputError(BuildGateError):
    """Raised when an invocation is given inputs it cannot act on."""


class CollaboratorError(BuildGateError):
    """Raised when an external collaborator (git, the filesystem) fails."""

    def __init__(self, phase: str, cause: object) -> None:
        self.phase = phase
        self.cause = cause
        super().__init__(f"error in {phase}: {cause}")


class HandoffError(BuildGateError):
    """Raised when control cannot be transferred to the image builder.

    The CLI lets this propagate instead of turning it into a normal error exit.
    """


__all__ = ["BuildGateError", "CollaboratorError", "HandoffError", "InputError"]
