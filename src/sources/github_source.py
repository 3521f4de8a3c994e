from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from core.errors import FilesystemError, UnsupportedEntryError
from core.imports import rewrite_imports, rule_for
from core.interfaces import ContentsClient
from core.logging import get_logger
from core.models import RepoSpecifier
from core.paths import PROTO_EXTENSION, is_proto_file, relative_to_root


"""GitHub Contents API backed tree fetcher.

Walks the subtree at `spec.path` depth-first, one listing request per
directory and one content request per proto file, and mirrors the proto
files under the destination directory with their imports rewritten.
"""

logger = get_logger("github_source")


def _write_file(target: Path, content: bytes) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError as e:
        raise FilesystemError(f"failed to write file '{target}': {e}") from e


class ContentsApiFetcher:
    def __init__(
        self,
        *,
        client: ContentsClient,
        rewrite_root: Optional[str] = None,
        extension: str = PROTO_EXTENSION,
    ) -> None:
        self._client = client
        self._rewrite_root = rewrite_root
        self._extension = extension

    async def fetch(self, spec: RepoSpecifier, dest: Path) -> int:
        logger.info("downloading proto files of %s/%s using the GitHub API", spec.owner, spec.repo)
        listing = await self._client.get_contents(
            owner=spec.owner, repo=spec.repo, path=spec.path, ref=spec.branch
        )

        if not isinstance(listing, list):
            # The specifier points at a single file
            if listing.type == "file" and is_proto_file(listing.name, self._extension):
                rule = rule_for(listing.name, spec.repo, override=self._rewrite_root)
                _write_file(Path(dest) / listing.name, rewrite_imports(listing.content or b"", rule))
                return 1
            raise UnsupportedEntryError(
                f"path '{spec.path}' in '{spec.owner}/{spec.repo}' is not a proto file or a directory"
            )

        return await self._mirror_dir(spec, listing, Path(dest))

    async def _mirror_dir(self, spec: RepoSpecifier, entries: List, dest: Path) -> int:
        written = 0
        for item in entries:
            if item.type == "file" and is_proto_file(item.name, self._extension):
                body = await self._client.get_contents(
                    owner=spec.owner, repo=spec.repo, path=item.path, ref=spec.branch
                )
                if isinstance(body, list) or body.type != "file":
                    kind = "directory" if isinstance(body, list) else body.type
                    raise UnsupportedEntryError(
                        f"expected '{item.path}' to be a file, but GitHub API returned type '{kind}'"
                    )

                relative = relative_to_root(item.path, spec.path)
                rule = rule_for(relative, spec.repo, override=self._rewrite_root)
                _write_file(dest / item.name, rewrite_imports(body.content or b"", rule))
                logger.debug("wrote %s", dest / item.name)
                written += 1

            elif item.type == "dir":
                sub = dest / item.name
                try:
                    sub.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise FilesystemError(f"failed to create subdirectory '{sub}': {e}") from e

                children = await self._client.get_contents(
                    owner=spec.owner, repo=spec.repo, path=item.path, ref=spec.branch
                )
                if not isinstance(children, list):
                    raise UnsupportedEntryError(f"expected '{item.path}' to be a directory")
                written += await self._mirror_dir(spec, children, sub)

        return written
