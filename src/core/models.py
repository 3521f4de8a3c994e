"""Immutable dataclasses describing sources, specifiers and run results.

RepoSpecifier is the parsed form of `github.com/owner/repo/path[@branch]`.
Source descriptors form a small tagged union consumed by the assembler,
and AggregationReport collects the per-source outcome of one run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Literal, Optional, Tuple, Union


SourceKind = Literal["local", "public", "private"]


class AuthMode(str, Enum):
    TOKEN = "token"
    SSH = "ssh"


class AssemblerState(str, Enum):
    IDLE = "idle"
    PREPARING_DESTINATION = "preparing_destination"
    FETCHING_LOCAL = "fetching_local"
    FETCHING_PRIVATE = "fetching_private"
    FETCHING_PUBLIC = "fetching_public"
    COMPLETE = "complete"


@dataclass(frozen=True)
class RepoSpecifier:
    """A parsed remote source reference.

    `path` is relative to the repository root and may be empty.
    `branch` is None when the default branch should be used.
    """

    host: str
    owner: str
    repo: str
    path: str = ""
    branch: Optional[str] = None

    @property
    def ssh_url(self) -> str:
        return f"git@{self.host}:{self.owner}/{self.repo}.git"

    def __str__(self) -> str:
        base = f"{self.host}/{self.owner}/{self.repo}/{self.path}"
        return f"{base}@{self.branch}" if self.branch else base


@dataclass(frozen=True)
class LocalSourceDescriptor:
    path: Path

    @property
    def label(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class PublicRemote:
    # Raw specifier; parsing happens per source so a bad string only fails itself
    specifier: str

    @property
    def label(self) -> str:
        return self.specifier


@dataclass(frozen=True)
class PrivateRemote:
    specifier: str
    auth_mode: Optional[AuthMode] = None

    @property
    def label(self) -> str:
        return self.specifier


SourceDescriptor = Union[LocalSourceDescriptor, PublicRemote, PrivateRemote]


@dataclass(frozen=True)
class AggregationConfig:
    """Inputs of one aggregation run.

    Field groups:
    - Local: local_path
    - Remote: public_repos, private_repos
    - Private access: auth_mode (fixed before any fetch begins)
    - Rewriting: rewrite_root (explicit original root segment, optional)
    """

    local_path: Optional[Path] = None
    public_repos: Tuple[str, ...] = ()
    private_repos: Tuple[str, ...] = ()
    auth_mode: Optional[AuthMode] = None
    rewrite_root: Optional[str] = None

    @property
    def has_sources(self) -> bool:
        return bool(self.local_path or self.public_repos or self.private_repos)

    def descriptors(self) -> Iterator[SourceDescriptor]:
        if self.local_path:
            yield LocalSourceDescriptor(path=self.local_path)
        for spec in self.private_repos:
            yield PrivateRemote(specifier=spec, auth_mode=self.auth_mode)
        for spec in self.public_repos:
            yield PublicRemote(specifier=spec)


@dataclass(frozen=True)
class SourceResult:
    label: str
    kind: SourceKind
    ok: bool
    files_written: int = 0
    error: Optional[str] = None


@dataclass
class AggregationReport:
    destination: Path
    results: List[SourceResult] = field(default_factory=list)

    @property
    def failures(self) -> List[SourceResult]:
        return [r for r in self.results if not r.ok]

    @property
    def succeeded(self) -> List[SourceResult]:
        return [r for r in self.results if r.ok]

    @property
    def files_written(self) -> int:
        return sum(r.files_written for r in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "destination": str(self.destination),
            "files_written": self.files_written,
            "results": [
                {
                    "source": r.label,
                    "kind": r.kind,
                    "ok": r.ok,
                    "files_written": r.files_written,
                    "error": r.error,
                }
                for r in self.results
            ],
        }
