"""CLI entrypoints for buildgate commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, Dict, Tuple

from .config import ConfigError, load_config
from .errors import BuildGateError, HandoffError
from .logging import configure_logging, get_logger, log_params
from .models import BuildDecision, BuildScope, BuildTarget, RevisionRef
from .pipeline import BuildGate

_STATUS_FILE_HELP = (
    "The path to the status file shared by the check and build stages. "
    "Holds Skipped when no relevant files changed."
)


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_clone_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--repo", required=True, help="The repo clone url.")
    parser.add_argument("--clone-path", required=True, help="The path to clone the repo to.")


def _add_pr_revision_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--pr-revision-hash", required=True, help="The PR revision id (e.g. commit sha hash)."
    )
    parser.add_argument(
        "--pr-revision-ref", required=True, help="The PR ref that will be used locally."
    )
    parser.add_argument(
        "--base-revision-hash",
        required=True,
        help="The base ref revision id (e.g. commit sha hash).",
    )
    parser.add_argument(
        "--base-revision-ref", required=True, help="The base ref that will be used locally."
    )
    parser.add_argument(
        "--repo-override-dir",
        type=Path,
        default=None,
        help="Files under this directory are copied into the clone when a build is needed.",
    )


def _add_commit_revision_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--revision-hash", required=True, help="The revision id (e.g. commit sha hash)."
    )
    parser.add_argument(
        "--revision-ref", required=True, help="The ref that will be used locally."
    )


def _add_scope_options(parser: argparse.ArgumentParser, *, clone_path: bool = False) -> None:
    if clone_path:
        parser.add_argument("--clone-path", required=True, help="The path to the cloned repo.")
    parser.add_argument("--dockerfile", required=True, help="The path to the dockerfile to build.")
    parser.add_argument(
        "--docker-context-dir",
        required=True,
        help="The path to the docker context used for the build. Blank means always build.",
    )
    parser.add_argument("--status-file", required=True, type=Path, help=_STATUS_FILE_HELP)


def _add_image_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--image-registry",
        required=True,
        help="The image registry used for pushing images. Set to blank to use docker hub.",
    )
    parser.add_argument(
        "--image-repo",
        required=True,
        help="The image repo used for pushing images. Typically the repo name.",
    )
    parser.add_argument(
        "--dockerfile-dir",
        required=True,
        help=(
            "Suffix of the image repo, used to distinguish images in a monorepo. "
            "The full image format is: <image-registry><image-repo><dockerfile-dir>:<revision>"
        ),
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildgate",
        description="Decide whether a PR or commit needs a docker image build, then build it.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Path to .buildgate.yml or its directory (defaults to current directory).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also append logs to this file, e.g. for upload as a pipeline artifact.",
    )
    stages = parser.add_subparsers(dest="stage", required=True)

    check_parser = stages.add_parser(
        "check",
        help="Clone the revision and record Skipped in the status file if no relevant files changed.",
    )
    build_parser = stages.add_parser(
        "build",
        help="Build the image from an existing clone unless the status file says Skipped.",
    )
    run_parser = stages.add_parser(
        "run",
        help="Check and build in a single process.",
    )

    for stage_parser in (check_parser, build_parser, run_parser):
        _add_verbose_option(stage_parser, suppress_default=True)
        modes = stage_parser.add_subparsers(dest="mode", required=True)
        pr_parser = modes.add_parser("pr", help="PR: all layers are built, nothing is pushed.")
        commit_parser = modes.add_parser(
            "commit", help="Commit: the image is pushed if the build succeeds."
        )
        _add_verbose_option(pr_parser, suppress_default=True)
        _add_verbose_option(commit_parser, suppress_default=True)

        if stage_parser is build_parser:
            _add_scope_options(pr_parser, clone_path=True)
            _add_scope_options(commit_parser, clone_path=True)
            _add_commit_revision_options(commit_parser)
            _add_image_options(commit_parser)
            continue

        _add_clone_options(pr_parser)
        _add_pr_revision_options(pr_parser)
        _add_scope_options(pr_parser)
        _add_clone_options(commit_parser)
        _add_commit_revision_options(commit_parser)
        _add_scope_options(commit_parser)
        if stage_parser is run_parser:
            _add_image_options(commit_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for buildgate commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    handler = _HANDLERS[(args.stage, args.mode)]
    try:
        config = load_config(args.config)
        if config.source is not None:
            logger.debug("Loaded configuration from %s", config.source)
        gate = BuildGate(config)
        handler(gate, args)
    except HandoffError:
        # The builder could not be started; nothing left to clean up.
        raise
    except (BuildGateError, ConfigError) as exc:
        logger.debug("Command failed", exc_info=True)
        parser.exit(1, f"error executing command: {exc}\n")


def _scope(args: argparse.Namespace) -> BuildScope:
    return BuildScope(dockerfile=args.dockerfile, context_dir=args.docker_context_dir)


def _target(args: argparse.Namespace) -> BuildTarget:
    return BuildTarget(
        registry=args.image_registry,
        repo_prefix=args.image_repo,
        repo_suffix=args.dockerfile_dir,
        tag=args.revision_hash,
    )


def _log_args(args: argparse.Namespace) -> None:
    params = {
        key: value
        for key, value in vars(args).items()
        if key not in {"stage", "mode", "verbose", "config", "log_file"}
    }
    log_params(get_logger("cli"), f"{args.stage} {args.mode}", params)


def _handle_check_pr(gate: BuildGate, args: argparse.Namespace) -> None:
    _log_args(args)
    gate.check_pr(
        args.repo,
        args.clone_path,
        base=RevisionRef(args.base_revision_hash, args.base_revision_ref),
        pr=RevisionRef(args.pr_revision_hash, args.pr_revision_ref),
        scope=_scope(args),
        status_file=args.status_file,
        override_dir=args.repo_override_dir,
    )


def _handle_check_commit(gate: BuildGate, args: argparse.Namespace) -> None:
    _log_args(args)
    gate.check_commit(
        args.repo,
        args.clone_path,
        revision=RevisionRef(args.revision_hash, args.revision_ref),
        scope=_scope(args),
        status_file=args.status_file,
    )


def _handle_build_pr(gate: BuildGate, args: argparse.Namespace) -> None:
    _log_args(args)
    gate.build_pr(args.clone_path, scope=_scope(args), status_file=args.status_file)


def _handle_build_commit(gate: BuildGate, args: argparse.Namespace) -> None:
    _log_args(args)
    gate.build_commit(
        args.clone_path,
        scope=_scope(args),
        status_file=args.status_file,
        target=_target(args),
    )


def _handle_run_pr(gate: BuildGate, args: argparse.Namespace) -> None:
    _log_args(args)
    decision = gate.run_pr(
        args.repo,
        args.clone_path,
        base=RevisionRef(args.base_revision_hash, args.base_revision_ref),
        pr=RevisionRef(args.pr_revision_hash, args.pr_revision_ref),
        scope=_scope(args),
        status_file=args.status_file,
        override_dir=args.repo_override_dir,
    )
    if decision is BuildDecision.SKIP:
        get_logger("cli").info("Build is skipped. Exiting early")


def _handle_run_commit(gate: BuildGate, args: argparse.Namespace) -> None:
    _log_args(args)
    decision = gate.run_commit(
        args.repo,
        args.clone_path,
        revision=RevisionRef(args.revision_hash, args.revision_ref),
        scope=_scope(args),
        status_file=args.status_file,
        target=_target(args),
    )
    if decision is BuildDecision.SKIP:
        get_logger("cli").info("Build is skipped. Exiting early")


_HANDLERS: Dict[Tuple[str, str], Callable[[BuildGate, argparse.Namespace], None]] = {
    ("check", "pr"): _handle_check_pr,
    ("check", "commit"): _handle_check_commit,
    ("build", "pr"): _handle_build_pr,
    ("build", "commit"): _handle_build_commit,
    ("run", "pr"): _handle_run_pr,
    ("run", "commit"): _handle_run_commit,
}


if __name__ == "__main__":
    main(sys.argv[1:])
