"""MCP tool that assembles a merged proto workspace.

Registers the 'assemble_protos' tool which gathers .proto files from a
local directory and GitHub repositories into one workspace ready for
`buf generate`, and returns a per-source report.
"""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from clients.github import GitHubClient
from config import (
    GIT_CLONE_TIMEOUT,
    MAX_PARALLEL_SOURCES,
    SSH_DIR,
    TEMPLATES_DIR,
    WORKSPACE_DIR,
)
from core.models import AggregationConfig, AuthMode
from sources.source_factory import resolve_auth_mode
from workspace.runner import assemble_workspace, build_github_client
from workspace.templates import load_templates


def _clean_list(values: Optional[List[str]]) -> tuple[str, ...]:
    return tuple(v.strip() for v in (values or []) if v and v.strip())


def register(mcp: FastMCP, *, github_client: Optional[GitHubClient] = None) -> None:
    client = github_client or build_github_client()

    @mcp.tool(name="assemble_protos")
    async def assemble_protos(
        public_repos: Optional[List[str]] = None,
        private_repos: Optional[List[str]] = None,
        local_path: Optional[str] = None,
        workspace_dir: Optional[str] = None,
        output_path: str = "events",
        rewrite_root: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Gather .proto files into one workspace and report per-source results.

        Params:
          - public_repos: specifiers like "github.com/acme/protos/api@main".
          - private_repos: same format; fetched with GITHUB_TOKEN or an SSH key.
          - local_path: optional local directory of .proto files.
          - workspace_dir: where to assemble (default: WORKSPACE_DIR or a new temp dir).
          - output_path: generator output path written into the buf templates.
          - rewrite_root: explicit import root segment to rewrite (optional).

        Returns:
          Dict with the workspace path, destination, files_written and one
          entry per source (ok/error).

        Raises:
          ValidationError when no source is given; FilesystemError when the
          workspace or the local copy fails. Remote failures are reported,
          not raised.
        """
        config = AggregationConfig(
            local_path=Path(local_path).expanduser() if local_path and local_path.strip() else None,
            public_repos=_clean_list(public_repos),
            private_repos=_clean_list(private_repos),
            auth_mode=AuthMode.TOKEN if client.authenticated else resolve_auth_mode(None, SSH_DIR),
            rewrite_root=(rewrite_root or "").strip() or None,
        )

        created = False
        if workspace_dir and workspace_dir.strip():
            workspace = Path(workspace_dir).expanduser()
        elif WORKSPACE_DIR is not None:
            workspace = WORKSPACE_DIR
        else:
            workspace = Path(tempfile.mkdtemp(prefix="protogather-"))
            created = True

        try:
            report = await assemble_workspace(
                config,
                workspace,
                templates=load_templates(TEMPLATES_DIR),
                output_path=output_path,
                github_client=client,
                clone_timeout=GIT_CLONE_TIMEOUT,
                max_parallel_sources=MAX_PARALLEL_SOURCES,
            )
        except BaseException:
            # A failed or cancelled run leaves nothing usable in a temp workspace
            if created:
                shutil.rmtree(workspace, ignore_errors=True)
            raise
        return {"workspace": str(workspace), **report.to_dict()}
