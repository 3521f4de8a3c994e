"""Factory for selecting the remote fetcher strategy and the auth mode.

Exposes resolve_auth_mode, decided once before any fetch begins, and
get_remote_fetcher which returns either a ContentsApiFetcher or an
SshCloneFetcher for the chosen mode.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from clients.git_client import GitCli
from clients.github import GitHubClient
from core.errors import ValidationError
from core.interfaces import RemoteTreeFetcher
from core.models import AuthMode
from core.paths import PROTO_EXTENSION
from sources.clone_source import CloneTransport, SshCloneFetcher
from sources.github_source import ContentsApiFetcher

SSH_KEY_FILES = ("id_rsa", "id_ed25519", "id_ecdsa")


def has_ssh_identity(ssh_dir: Optional[Path], key_files: Iterable[str] = SSH_KEY_FILES) -> bool:
    if ssh_dir is None or not ssh_dir.is_dir():
        return False
    return any((ssh_dir / name).is_file() for name in key_files)


def resolve_auth_mode(token: Optional[str], ssh_dir: Optional[Path]) -> Optional[AuthMode]:
    """
    Pick the private-repository access mode.

    Priority Logic:
    1. A non-empty token -> TOKEN (Contents API).
    2. An SSH identity in ssh_dir -> SSH (clone).
    3. Otherwise -> None (private sources cannot be fetched).
    """
    if (token or "").strip():
        return AuthMode.TOKEN
    if has_ssh_identity(ssh_dir):
        return AuthMode.SSH
    return None


def get_remote_fetcher(
    auth_mode: Optional[AuthMode],
    *,
    github_client: Optional[GitHubClient] = None,
    git: Optional[CloneTransport] = None,
    rewrite_root: Optional[str] = None,
    clone_timeout: float = 300.0,
    extension: str = PROTO_EXTENSION,
) -> RemoteTreeFetcher:
    """Return the fetcher for `auth_mode` (None selects the unauthenticated API path)."""
    if auth_mode == AuthMode.SSH:
        return SshCloneFetcher(
            git=git or GitCli(timeout=clone_timeout), rewrite_root=rewrite_root, extension=extension
        )

    if auth_mode in (None, AuthMode.TOKEN):
        if github_client is None:
            raise ValidationError("Missing GitHub client for API-based fetching")
        return ContentsApiFetcher(client=github_client, rewrite_root=rewrite_root, extension=extension)

    raise ValidationError(f"Unknown auth mode: {auth_mode!r}")
