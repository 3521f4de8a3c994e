"""Core protocol and interface definitions.

Defines the RemoteTreeFetcher protocol implemented by the Contents API
fetcher and the SSH clone fetcher, and the ContentsClient protocol the
API fetcher consumes, so the assembler can treat both strategies alike.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Protocol, Union

from core.models import RepoSpecifier


class RemoteTreeFetcher(Protocol):
    """Contract for mirroring a remote proto subtree into a local directory."""

    async def fetch(self, spec: RepoSpecifier, dest: Path) -> int:
        """Write the proto files of `spec` under `dest`; return the file count."""
        ...


class ContentsClient(Protocol):
    """Contract for a repository content-listing service."""

    async def get_contents(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        ref: Optional[str] = None,
    ) -> Union["ContentEntryLike", List["ContentEntryLike"]]:
        ...


class ContentEntryLike(Protocol):
    name: str
    path: str
    type: str
    content: Optional[bytes]
