"""End-to-end behaviour of the check and build stages."""

from __future__ import annotations

from pathlib import Path

import pytest

from buildgate.config import BuildGateConfig
from buildgate.errors import InputError
from buildgate.models import BuildDecision, BuildScope, BuildTarget, RevisionRef
from buildgate.pipeline import BuildGate
from tests._fixtures.fake_vcs import FakeVCS
from tests._fixtures.recording_launcher import RecordingLauncher

REPO = "https://github.com/example/project.git"
BASE = RevisionRef("base1", "main")
PR = RevisionRef("pr1", "pr-7")
COMMIT = RevisionRef("c2", "main")
TARGET = BuildTarget("registry.example.com/", "project", "-app", "c2")


def _gate(vcs: FakeVCS, launcher: RecordingLauncher, **config_overrides: object) -> BuildGate:
    config = BuildGateConfig()
    for key, value in config_overrides.items():
        setattr(config.status, key, value)
    return BuildGate(config, vcs=vcs, launcher=launcher)  # type: ignore[arg-type]


def test_scenario_a_pr_change_under_context_builds(
    tmp_path: Path, launcher: RecordingLauncher
) -> None:
    status_file = tmp_path / "status"
    vcs = FakeVCS(changes={("base1", "pr1"): ["context/sub/file.txt"]})
    gate = _gate(vcs, launcher)

    decision = gate.check_pr(
        REPO,
        str(tmp_path / "clone"),
        base=BASE,
        pr=PR,
        scope=BuildScope("Dockerfile", "context"),
        status_file=status_file,
    )

    assert decision is BuildDecision.BUILD
    assert not status_file.exists()
    assert launcher.handoffs == []


def test_scenario_b_pr_docs_only_change_skips(tmp_path: Path, launcher: RecordingLauncher) -> None:
    status_file = tmp_path / "status"
    vcs = FakeVCS(changes={("base1", "pr1"): ["docs/readme.md"]})
    gate = _gate(vcs, launcher)

    decision = gate.check_pr(
        REPO,
        str(tmp_path / "clone"),
        base=BASE,
        pr=PR,
        scope=BuildScope("app/Dockerfile", "app"),
        status_file=status_file,
    )

    assert decision is BuildDecision.SKIP
    assert status_file.read_bytes() == b"Skipped"


def test_scenario_c_commit_dockerfile_change_builds(
    tmp_path: Path, launcher: RecordingLauncher
) -> None:
    vcs = FakeVCS(parents={"c2": ["c1"]}, changes={("c1", "c2"): ["Dockerfile"]})
    gate = _gate(vcs, launcher)

    evaluation = gate.evaluate_commit(
        REPO, str(tmp_path), revision=COMMIT, scope=BuildScope("Dockerfile", "")
    )

    assert evaluation.decision is BuildDecision.BUILD
    assert evaluation.materialized.change_set == frozenset({"Dockerfile"})


def test_success_marker_written_when_configured(
    tmp_path: Path, launcher: RecordingLauncher
) -> None:
    status_file = tmp_path / "status"
    vcs = FakeVCS(parents={"c2": ["c1"]}, changes={("c1", "c2"): ["app/x.py"]})
    gate = _gate(vcs, launcher, success_marker="Succeeded")

    decision = gate.check_commit(
        REPO,
        str(tmp_path / "clone"),
        revision=COMMIT,
        scope=BuildScope("Dockerfile", "app"),
        status_file=status_file,
    )

    assert decision is BuildDecision.BUILD
    assert status_file.read_text(encoding="utf-8") == "Succeeded"


def test_check_pr_applies_overrides_only_when_building(
    tmp_path: Path, launcher: RecordingLauncher
) -> None:
    override_dir = tmp_path / "overrides"
    override_dir.mkdir()
    (override_dir / "settings.yml").write_text("debug: true\n", encoding="utf-8")
    clone = tmp_path / "clone"

    skip_gate = _gate(FakeVCS(changes={("base1", "pr1"): ["docs/a.md"]}), launcher)
    skip_gate.check_pr(
        REPO,
        str(clone),
        base=BASE,
        pr=PR,
        scope=BuildScope("Dockerfile", "app"),
        status_file=tmp_path / "status",
        override_dir=override_dir,
    )
    assert not (clone / "settings.yml").exists()

    build_gate = _gate(FakeVCS(changes={("base1", "pr1"): ["app/a.py"]}), launcher)
    build_gate.check_pr(
        REPO,
        str(clone),
        base=BASE,
        pr=PR,
        scope=BuildScope("Dockerfile", "app"),
        status_file=tmp_path / "status2",
        override_dir=override_dir,
    )
    assert (clone / "settings.yml").read_text(encoding="utf-8") == "debug: true\n"


def test_build_pr_exits_early_when_skipped(tmp_path: Path, launcher: RecordingLauncher) -> None:
    status_file = tmp_path / "status"
    status_file.write_text("Skipped", encoding="utf-8")
    gate = _gate(FakeVCS(), launcher)

    built = gate.build_pr("/clone", scope=BuildScope("Dockerfile", "app"), status_file=status_file)

    assert built is False
    assert launcher.handoffs == []


def test_build_pr_hands_off_when_status_missing(
    tmp_path: Path, launcher: RecordingLauncher
) -> None:
    gate = _gate(FakeVCS(), launcher)

    built = gate.build_pr(
        "/clone", scope=BuildScope("Dockerfile", "app"), status_file=tmp_path / "absent"
    )

    assert built is True
    assert launcher.handoffs == [
        (
            "/kaniko/executor",
            [
                "executor",
                "--dockerfile=/clone/Dockerfile",
                "--context=dir:///clone/app",
                "--no-push",
            ],
        )
    ]


def test_build_commit_pushes_to_destination(tmp_path: Path, launcher: RecordingLauncher) -> None:
    status_file = tmp_path / "status"
    status_file.write_text("Succeeded", encoding="utf-8")
    gate = _gate(FakeVCS(), launcher)

    gate.build_commit(
        "/clone",
        scope=BuildScope("app/Dockerfile", "app"),
        status_file=status_file,
        target=TARGET,
    )

    path, argv = launcher.handoffs[0]
    assert path == "/kaniko/executor"
    assert argv[-1] == "--destination=registry.example.com/project-app:c2"


def test_run_commit_builds_without_reading_status(
    tmp_path: Path, launcher: RecordingLauncher
) -> None:
    vcs = FakeVCS(parents={"c2": ["c1"]}, changes={("c1", "c2"): ["app/main.py"]})
    gate = _gate(vcs, launcher)

    decision = gate.run_commit(
        REPO,
        str(tmp_path / "clone"),
        revision=COMMIT,
        scope=BuildScope("app/Dockerfile", "app"),
        status_file=tmp_path / "status",
        target=TARGET,
    )

    assert decision is BuildDecision.BUILD
    assert len(launcher.handoffs) == 1


def test_run_pr_skip_records_status_without_handoff(
    tmp_path: Path, launcher: RecordingLauncher
) -> None:
    status_file = tmp_path / "status"
    vcs = FakeVCS(changes={("base1", "pr1"): ["services/apiv2/x"]})
    gate = _gate(vcs, launcher)

    decision = gate.run_pr(
        REPO,
        str(tmp_path / "clone"),
        base=BASE,
        pr=PR,
        scope=BuildScope("Dockerfile", "services/api"),
        status_file=status_file,
    )

    assert decision is BuildDecision.SKIP
    assert status_file.read_bytes() == b"Skipped"
    assert launcher.handoffs == []


def test_merge_commit_is_rejected_before_decision(
    tmp_path: Path, launcher: RecordingLauncher
) -> None:
    status_file = tmp_path / "status"
    vcs = FakeVCS(parents={"c2": ["c1", "c0"]})
    gate = _gate(vcs, launcher)

    with pytest.raises(InputError):
        gate.check_commit(
            REPO,
            str(tmp_path / "clone"),
            revision=COMMIT,
            scope=BuildScope("Dockerfile", ""),
            status_file=status_file,
        )

    assert not status_file.exists()
