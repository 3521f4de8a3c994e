"""Local filesystem tree copier.

Mirrors the proto files of a local directory into the workspace root,
keeping relative structure and directory permission bits. Imports are
left untouched: local paths are already workspace-relative.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import stat
from pathlib import Path

from core.errors import FilesystemError
from core.logging import get_logger
from core.paths import PROTO_EXTENSION, is_proto_file

logger = get_logger("local")


def _mkdir_like(src_dir: Path, target: Path) -> None:
    try:
        mode = stat.S_IMODE(src_dir.stat().st_mode)
        target.mkdir(parents=True, exist_ok=True)
        # Keep the owner able to write into the mirror
        os.chmod(target, mode | stat.S_IRWXU)
    except OSError as e:
        raise FilesystemError(f"failed to create directory '{target}': {e}") from e


def copy_proto_tree(src: Path, dst: Path, *, extension: str = PROTO_EXTENSION) -> int:
    """Copy every `extension` file under `src` into `dst`; return the file count.

    Any single failure aborts the copy with a FilesystemError naming the path.
    """
    base = Path(src)
    if not base.is_dir():
        raise FilesystemError(f"local proto path is not a directory: '{base}'")

    def _on_error(err: OSError) -> None:
        raise FilesystemError(f"failed to walk '{err.filename}': {err}") from err

    copied = 0
    for current, dirnames, filenames in os.walk(base, onerror=_on_error):
        current_path = Path(current)
        rel = current_path.relative_to(base)
        target_dir = Path(dst) / rel
        _mkdir_like(current_path, target_dir)

        dirnames.sort()
        for name in sorted(filenames):
            if not is_proto_file(name, extension):
                continue
            source_file = current_path / name
            target_file = target_dir / name
            try:
                shutil.copyfile(source_file, target_file)
            except OSError as e:
                raise FilesystemError(f"failed to copy proto file '{source_file}' to '{target_file}': {e}") from e
            logger.debug("copied %s", target_file)
            copied += 1

    return copied


class LocalTreeCopier:
    # Runs the blocking walk in a worker thread to keep the event loop responsive.

    def __init__(self, *, extension: str = PROTO_EXTENSION) -> None:
        self._extension = extension

    async def copy(self, src: Path, dst: Path) -> int:
        resolved = Path(src).expanduser().resolve()
        return await asyncio.to_thread(copy_proto_tree, resolved, Path(dst), extension=self._extension)
