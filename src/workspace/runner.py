from __future__ import annotations

from pathlib import Path
from typing import Optional

from clients.github import GitHubClient
from config import (
    GITHUB_API_URL,
    GITHUB_MAX_CONCURRENCY,
    GITHUB_MAX_RETRY_SLEEP,
    GITHUB_RATE_BURST,
    GITHUB_RATE_PER_SEC,
    GITHUB_TIMEOUT,
    GITHUB_TOKEN,
    HTTP_VERIFY,
    PROTO_EXTENSION,
)
from core.errors import ValidationError
from core.models import AggregationConfig, AggregationReport
from core.rate_limiter import RateLimiter
from sources.clone_source import CloneTransport
from workspace.assembler import create_assembler
from workspace.templates import GeneratorTemplates, prepare_workspace


def build_github_client(token: Optional[str] = None) -> GitHubClient:
    # `token` overrides GITHUB_TOKEN; an empty value means unauthenticated
    return GitHubClient(
        token=GITHUB_TOKEN if token is None else token,
        base_url=GITHUB_API_URL,
        timeout=GITHUB_TIMEOUT,
        verify=HTTP_VERIFY,
        max_concurrency=GITHUB_MAX_CONCURRENCY,
        rate_per_sec=GITHUB_RATE_PER_SEC,
        rate_burst=GITHUB_RATE_BURST,
        rate_limiter=RateLimiter(max_sleep_seconds=GITHUB_MAX_RETRY_SLEEP),
    )


async def assemble_workspace(
    config: AggregationConfig,
    workspace: Path,
    *,
    templates: GeneratorTemplates,
    output_path: str,
    github_client: GitHubClient,
    git: Optional[CloneTransport] = None,
    clone_timeout: float = 300.0,
    max_parallel_sources: int = 4,
) -> AggregationReport:
    """Lay out `workspace` (templates + `proto/`) and aggregate every source into it.

    Destination and local-copy failures raise; remote failures are in the report.
    """
    if not config.has_sources:
        raise ValidationError("you must provide at least one of a local path, a private repo or a public repo")

    proto_root = prepare_workspace(workspace, templates, output_path)
    assembler = create_assembler(
        config,
        github_client=github_client,
        git=git,
        clone_timeout=clone_timeout,
        max_parallel_sources=max_parallel_sources,
        extension=PROTO_EXTENSION,
    )
    return await assembler.assemble(proto_root)
