from __future__ import annotations

import pytest

from tests._fixtures.recording_launcher import RecordingLauncher


@pytest.fixture
def launcher() -> RecordingLauncher:
    """Provide a launcher that records the builder invocation."""
    return RecordingLauncher()
