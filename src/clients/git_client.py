from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Dict, List, Optional

from core.errors import TransportError
from core.logging import get_logger

logger = get_logger("git")


class GitCli:
    """Thin async wrapper over the `git` executable.

    The subprocess is killed and reaped when the awaiting task is cancelled
    or the timeout expires, so an aborted run never leaves a clone running.
    """

    def __init__(self, *, executable: str = "git", timeout: Optional[float] = 300.0, shallow: bool = True) -> None:
        self._executable = executable
        self._timeout = timeout if timeout and timeout > 0 else None
        self._shallow = shallow

    def clone_args(self, url: str, dest: Path, *, branch: Optional[str] = None) -> List[str]:
        args = [self._executable, "clone", "--quiet"]
        if self._shallow:
            args += ["--depth", "1"]
        if branch:
            args += ["--branch", branch]
        args += [url, str(dest)]
        return args

    async def clone(self, url: str, dest: Path, *, branch: Optional[str] = None) -> None:
        args = self.clone_args(url, dest, branch=branch)
        logger.debug("running %s", " ".join(args))

        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env(),
            )
        except OSError as e:
            raise TransportError(f"failed to start git for '{url}': {e}") from e

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            await self._terminate(proc)
            raise TransportError(f"git clone of '{url}' timed out after {self._timeout}s") from e
        except asyncio.CancelledError:
            await self._terminate(proc)
            raise

        if proc.returncode != 0:
            detail = (stderr or b"").decode("utf-8", errors="replace").strip()
            raise TransportError(f"failed to clone repository '{url}' using SSH: {detail or proc.returncode}")

    @staticmethod
    def _env() -> Dict[str, str]:
        env = os.environ.copy()
        # Never block on an interactive credential or host-key prompt
        env["GIT_TERMINAL_PROMPT"] = "0"
        env.setdefault("GIT_SSH_COMMAND", "ssh -o BatchMode=yes")
        return env

    @staticmethod
    async def _terminate(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()
