from __future__ import annotations

import asyncio
import tempfile
import threading
from pathlib import Path
from typing import Optional, Protocol

from core.errors import FilesystemError, NotFoundError, UnsupportedEntryError
from core.imports import rewrite_imports, rule_for
from core.logging import get_logger
from core.models import RepoSpecifier
from core.paths import PROTO_EXTENSION, is_proto_file


"""SSH clone backed tree fetcher.

Used for private repositories when no token is configured but an SSH
identity is. The repository is cloned into an ephemeral directory that
is removed on every exit path, including cancellation.
"""

logger = get_logger("clone_source")


class CloneTransport(Protocol):
    async def clone(self, url: str, dest: Path, *, branch: Optional[str] = None) -> None:
        ...


def _copy_rewritten(
    source_root: Path,
    dest: Path,
    *,
    repo: str,
    rewrite_root: Optional[str],
    extension: str,
    stop: Optional[threading.Event] = None,
) -> int:
    if source_root.is_file():
        if not is_proto_file(source_root.name, extension):
            raise UnsupportedEntryError(f"path '{source_root.name}' is not a proto file or a directory")
        files = [source_root]
        base = source_root.parent
    else:
        # Symlinks may point outside the clone, same as the API path skipping them
        files = sorted(
            p for p in source_root.rglob(f"*{extension}") if p.is_file() and not p.is_symlink()
        )
        base = source_root

    copied = 0
    for path in files:
        if stop is not None and stop.is_set():
            logger.debug("copy from %s stopped after %d files", base, copied)
            break
        relative = path.relative_to(base).as_posix()
        target = dest / relative
        rule = rule_for(relative, repo, override=rewrite_root)
        try:
            content = path.read_bytes()
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(rewrite_imports(content, rule))
        except OSError as e:
            raise FilesystemError(f"failed to copy proto file '{path}' to '{target}': {e}") from e
        logger.debug("wrote %s", target)
        copied += 1

    return copied


class SshCloneFetcher:
    def __init__(
        self,
        *,
        git: CloneTransport,
        rewrite_root: Optional[str] = None,
        extension: str = PROTO_EXTENSION,
        tmp_parent: Optional[Path] = None,
    ) -> None:
        self._git = git
        self._rewrite_root = rewrite_root
        self._extension = extension
        self._tmp_parent = tmp_parent

    async def fetch(self, spec: RepoSpecifier, dest: Path) -> int:
        logger.info("downloading proto files of %s/%s using SSH", spec.owner, spec.repo)

        try:
            tmp_dir = tempfile.TemporaryDirectory(
                prefix="protogather-clone-", dir=self._tmp_parent, ignore_cleanup_errors=True
            )
        except OSError as e:
            raise FilesystemError(f"failed to create clone directory: {e}") from e

        with tmp_dir as tmp:
            clone_dir = Path(tmp) / spec.repo
            await self._git.clone(spec.ssh_url, clone_dir, branch=spec.branch)

            source_root = clone_dir / spec.path if spec.path else clone_dir
            if not source_root.resolve().is_relative_to(clone_dir.resolve()):
                raise UnsupportedEntryError(f"path '{spec.path}' resolves outside repository '{spec.owner}/{spec.repo}'")
            if not source_root.exists():
                raise NotFoundError(f"path '{spec.path}' not found within repository '{spec.owner}/{spec.repo}'")

            stop = threading.Event()
            copy = asyncio.ensure_future(
                asyncio.to_thread(
                    _copy_rewritten,
                    source_root,
                    Path(dest),
                    repo=spec.repo,
                    rewrite_root=self._rewrite_root,
                    extension=self._extension,
                    stop=stop,
                )
            )
            try:
                return await asyncio.shield(copy)
            except asyncio.CancelledError:
                # The worker thread reads from the clone dir, let it stop before cleanup
                stop.set()
                await asyncio.wait({copy})
                raise
