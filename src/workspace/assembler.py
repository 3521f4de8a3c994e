"""Workspace assembler: merge every configured source into one proto tree.

The run moves through IDLE -> PREPARING_DESTINATION -> FETCHING_LOCAL ->
FETCHING_PRIVATE -> FETCHING_PUBLIC -> COMPLETE. Destination and local
copy failures abort the run; a failing remote source is logged, recorded
in the report and skipped so the other sources still get fetched.

Remote sources land under `<dest>/<repo>/...`, which keeps two
repositories with identical relative paths apart and lets the sources of
one phase be fetched concurrently.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from clients.git_client import GitCli
from clients.github import GitHubClient, parse_specifier
from core.errors import FilesystemError, InvalidSpecifierError, ProtoGatherError, ValidationError
from core.interfaces import RemoteTreeFetcher
from core.logging import get_logger
from core.models import (
    AggregationConfig,
    AggregationReport,
    AssemblerState,
    AuthMode,
    LocalSourceDescriptor,
    PrivateRemote,
    PublicRemote,
    SourceDescriptor,
    SourceKind,
    SourceResult,
)
from core.paths import PROTO_EXTENSION
from sources.clone_source import CloneTransport
from sources.local_source import LocalTreeCopier
from sources.source_factory import get_remote_fetcher

logger = get_logger("assembler")


class LocalCopier(Protocol):
    async def copy(self, src: Path, dst: Path) -> int:
        ...


def _warn_shared_namespaces(descriptors: Iterable[SourceDescriptor]) -> None:
    # Remote sources are keyed by repository name only
    owners: Dict[str, List[str]] = {}
    for descriptor in descriptors:
        if isinstance(descriptor, LocalSourceDescriptor):
            continue
        try:
            spec = parse_specifier(descriptor.specifier)
        except InvalidSpecifierError:
            continue
        owners.setdefault(spec.repo, []).append(descriptor.label)
    for repo, labels in owners.items():
        distinct = sorted(set(labels))
        if len(distinct) > 1:
            logger.warning(
                "sources %s share the directory '%s' and may overwrite each other's files",
                ", ".join(distinct),
                repo,
            )


class WorkspaceAssembler:
    def __init__(
        self,
        config: AggregationConfig,
        *,
        public_fetcher: RemoteTreeFetcher,
        private_fetcher: Optional[RemoteTreeFetcher] = None,
        local_copier: Optional[LocalCopier] = None,
        max_parallel_sources: int = 4,
    ) -> None:
        self._config = config
        self._public_fetcher = public_fetcher
        self._private_fetcher = private_fetcher
        self._local_copier = local_copier or LocalTreeCopier()
        self._max_parallel = max(1, int(max_parallel_sources))
        self._state = AssemblerState.IDLE

    @property
    def state(self) -> AssemblerState:
        return self._state

    def _transition(self, state: AssemblerState) -> None:
        logger.debug("assembler state %s -> %s", self._state.value, state.value)
        self._state = state

    async def assemble(self, dest: Path) -> AggregationReport:
        """Populate `dest` from every configured source and report per-source outcomes."""
        dest = Path(dest)
        report = AggregationReport(destination=dest)

        self._transition(AssemblerState.PREPARING_DESTINATION)
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"failed to create destination directory '{dest}': {e}") from e

        descriptors = list(self._config.descriptors())
        _warn_shared_namespaces(descriptors)

        self._transition(AssemblerState.FETCHING_LOCAL)
        for local in (d for d in descriptors if isinstance(d, LocalSourceDescriptor)):
            try:
                count = await self._local_copier.copy(local.path, dest)
            except FilesystemError as e:
                raise FilesystemError(f"failed to copy local proto files from '{local.label}': {e}") from e
            logger.info("copied %d local proto files from %s", count, local.label)
            report.results.append(SourceResult(label=local.label, kind="local", ok=True, files_written=count))

        self._transition(AssemblerState.FETCHING_PRIVATE)
        private = [d for d in descriptors if isinstance(d, PrivateRemote)]
        if private:
            results = await self._fetch_all(private, kind="private", fetcher=self._private_fetcher, dest=dest)
            report.results.extend(results)
            self._log_phase("private", results)

        self._transition(AssemblerState.FETCHING_PUBLIC)
        public = [d for d in descriptors if isinstance(d, PublicRemote)]
        if public:
            results = await self._fetch_all(public, kind="public", fetcher=self._public_fetcher, dest=dest)
            report.results.extend(results)
            self._log_phase("public", results)

        self._transition(AssemblerState.COMPLETE)
        return report

    async def _fetch_all(
        self,
        descriptors: Iterable[PublicRemote | PrivateRemote],
        *,
        kind: SourceKind,
        fetcher: Optional[RemoteTreeFetcher],
        dest: Path,
    ) -> List[SourceResult]:
        sem = asyncio.Semaphore(self._max_parallel)

        async def _bounded(descriptor: PublicRemote | PrivateRemote) -> SourceResult:
            async with sem:
                return await self._fetch_one(descriptor, kind=kind, fetcher=fetcher, dest=dest)

        # gather keeps results in configuration order and every child settles
        # before an unexpected error is re-raised, so no fetch outlives the call
        outcomes = await asyncio.gather(*(_bounded(d) for d in descriptors), return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return list(outcomes)

    async def _fetch_one(
        self,
        descriptor: PublicRemote | PrivateRemote,
        *,
        kind: SourceKind,
        fetcher: Optional[RemoteTreeFetcher],
        dest: Path,
    ) -> SourceResult:
        label = descriptor.label
        try:
            spec = parse_specifier(descriptor.specifier)
            if fetcher is None:
                raise ValidationError(
                    "no GitHub token or SSH identity available for private repository access"
                )
            target = dest / spec.repo
            if target.resolve().parent != dest.resolve():
                raise InvalidSpecifierError(f"repository name '{spec.repo}' does not name a directory under '{dest}'")
            try:
                target.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FilesystemError(f"failed to create directory '{target}': {e}") from e
            count = await fetcher.fetch(spec, target)
        except (ProtoGatherError, OSError) as e:
            # A raw OSError (temp dir, disk full) is scoped to this source like any IO failure
            error = e if isinstance(e, ProtoGatherError) else FilesystemError(f"filesystem error: {e}")
            logger.error("failed to download %s-repo %s: %s", kind, label, error)
            return SourceResult(label=label, kind=kind, ok=False, error=str(error))

        logger.info("downloaded %d proto files from %s-repo %s", count, kind, label)
        return SourceResult(label=label, kind=kind, ok=True, files_written=count)

    @staticmethod
    def _log_phase(kind: str, results: List[SourceResult]) -> None:
        failed = [r for r in results if not r.ok]
        if failed:
            logger.warning("%d of %d %s repos failed", len(failed), len(results), kind)
        else:
            logger.info("successfully downloaded all %s repos", kind)


def create_assembler(
    config: AggregationConfig,
    *,
    github_client: GitHubClient,
    git: Optional[CloneTransport] = None,
    clone_timeout: float = 300.0,
    max_parallel_sources: int = 4,
    extension: str = PROTO_EXTENSION,
) -> WorkspaceAssembler:
    """Wire an assembler with the fetchers implied by `config.auth_mode`.

    Public repositories always go through the Contents API; private ones use
    the API when a token is configured and an SSH clone otherwise.
    """
    public_fetcher = get_remote_fetcher(
        None, github_client=github_client, rewrite_root=config.rewrite_root, extension=extension
    )

    private_fetcher: Optional[RemoteTreeFetcher] = None
    if config.auth_mode == AuthMode.TOKEN:
        if not github_client.authenticated:
            raise ValidationError("Token auth mode requires an authenticated GitHub client")
        private_fetcher = public_fetcher
    elif config.auth_mode == AuthMode.SSH:
        private_fetcher = get_remote_fetcher(
            AuthMode.SSH,
            git=git or GitCli(timeout=clone_timeout),
            rewrite_root=config.rewrite_root,
            extension=extension,
        )

    return WorkspaceAssembler(
        config,
        public_fetcher=public_fetcher,
        private_fetcher=private_fetcher,
        local_copier=LocalTreeCopier(extension=extension),
        max_parallel_sources=max_parallel_sources,
    )
