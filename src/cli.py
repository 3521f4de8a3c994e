"""CLI entrypoint: assemble a merged proto workspace for `buf generate`."""

from __future__ import annotations

import argparse
import asyncio
import shutil
import sys
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from config import GIT_CLONE_TIMEOUT, GITHUB_TOKEN, MAX_PARALLEL_SOURCES, SSH_DIR, TEMPLATES_DIR
from core.errors import ProtoGatherError
from core.logging import configure_logging
from core.models import AggregationConfig, AggregationReport
from sources.source_factory import resolve_auth_mode
from workspace.runner import assemble_workspace, build_github_client
from workspace.templates import load_templates


def _split_values(values: Optional[Sequence[str]]) -> List[str]:
    # Repeatable flags that also accept comma-separated values
    out: List[str] = []
    for value in values or []:
        out.extend(v.strip() for v in value.split(",") if v.strip())
    return out


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="protogather",
        description="Gather .proto files from a local directory and GitHub repositories into one workspace.",
    )
    parser.add_argument("--local", default=None, help="Path to local .proto files, e.g. './proto'.")
    parser.add_argument(
        "--private-repo",
        action="append",
        default=None,
        help='GitHub path(s) to private proto repos (repeatable, comma-separated), e.g. "github.com/acme/private-proto/proto".',
    )
    parser.add_argument(
        "--public-repo",
        action="append",
        default=None,
        help='GitHub path(s) to public proto repos (repeatable, comma-separated), e.g. "github.com/acme/public-proto/proto@main".',
    )
    parser.add_argument("--token", default=None, help="GitHub token for private repos (defaults to GITHUB_TOKEN).")
    parser.add_argument("--workspace", default=None, help="Workspace directory to assemble into (defaults to a new temp dir).")
    parser.add_argument("--output", default="events", help="Output directory written into the buf templates.")
    parser.add_argument(
        "--templates-dir",
        default=None,
        help="Directory with buf.yaml / buf.gen.*.yaml overrides (defaults to TEMPLATES_DIR).",
    )
    parser.add_argument("--rewrite-root", default=None, help="Explicit import root segment to rewrite for remote repos.")
    parser.add_argument("--strict", action="store_true", help="Exit non-zero when any source fails.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Increase log verbosity for troubleshooting.")
    return parser


def _config_from_args(args: argparse.Namespace, token: str) -> AggregationConfig:
    private = _split_values(args.private_repo)
    return AggregationConfig(
        local_path=Path(args.local).expanduser() if args.local else None,
        public_repos=tuple(_split_values(args.public_repo)),
        private_repos=tuple(private),
        auth_mode=resolve_auth_mode(token, SSH_DIR) if private else None,
        rewrite_root=args.rewrite_root,
    )


def _print_report(report: AggregationReport, workspace: Path) -> None:
    print(f"workspace: {workspace}")
    print(f"proto root: {report.destination} ({report.files_written} files)")
    for result in report.failures:
        print(f"FAILED {result.kind} {result.label}: {result.error}", file=sys.stderr)


def _discard(workspace: Path, created: bool) -> None:
    # Only a workspace this run created is ours to remove
    if created:
        shutil.rmtree(workspace, ignore_errors=True)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)

    token = (args.token if args.token is not None else GITHUB_TOKEN).strip()
    config = _config_from_args(args, token)
    if not config.has_sources:
        parser.error("you must provide at least one of --local, --private-repo, or --public-repo")

    created = not args.workspace
    workspace = Path(args.workspace).expanduser() if args.workspace else Path(tempfile.mkdtemp(prefix="protogather-"))
    templates_dir = Path(args.templates_dir).expanduser() if args.templates_dir else TEMPLATES_DIR

    try:
        report = asyncio.run(
            assemble_workspace(
                config,
                workspace,
                templates=load_templates(templates_dir),
                output_path=args.output,
                github_client=build_github_client(token),
                clone_timeout=GIT_CLONE_TIMEOUT,
                max_parallel_sources=MAX_PARALLEL_SOURCES,
            )
        )
    except ProtoGatherError as e:
        _discard(workspace, created)
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        _discard(workspace, created)
        print("interrupted", file=sys.stderr)
        return 130

    _print_report(report, workspace)
    if args.strict and report.failures:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
