"""Version-control collaborators."""

from .client import GitClient, VersionControl

__all__ = ["GitClient", "VersionControl"]
