"""GitHub client module: read repository content listings and file bodies.

This module provides a small async client around one GitHub endpoint, the
Contents API (`GET /repos/{owner}/{repo}/contents/{path}`). A directory
path answers with a list of entries without bodies; a file path answers
with a single entry whose base64 body is decoded here. Requests are paced
(`core.pacing.Pacer`), concurrency-limited, and retried on explicit
throttling signals (`core.rate_limiter.RateLimiter`).
"""

from __future__ import annotations

import asyncio
import base64
import binascii
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

import httpx

from core.errors import NotFoundError, TransportError
from core.logging import get_logger
from core.pacing import Pacer
from core.rate_limiter import RateLimiter

from .inputs import normalize_path, normalize_ref

logger = get_logger("github")


@dataclass(frozen=True, slots=True)
class ContentEntry:
    # One item of a Contents API answer; `content` is only set for single-file answers
    name: str
    path: str
    type: str
    content: Optional[bytes] = None


Contents = Union[ContentEntry, List[ContentEntry]]


class GitHubClient:
    """Async GitHub Contents API client.

    Purpose:
      - get_contents(owner, repo, path, ref=None) -> ContentEntry | List[ContentEntry]

    Key behavior:
      - 404 raises NotFoundError; other HTTP/transport failures raise TransportError.
      - Limits concurrency (Semaphore) and uses a pacer for client-side pacing.
      - Honors server-side throttling (Retry-After, rate-limit reset) via RateLimiter.
      - Sends `Authorization: Bearer <token>` only when a token is given.
    """

    BASE_URL = "https://api.github.com"
    JSON_ACCEPT = "application/vnd.github+json"
    API_VERSION = "2022-11-28"

    _MAX_RATE_LIMIT_RETRIES = 2  # total attempts = 1 + retries

    def __init__(
        self,
        *,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 20.0,
        verify: bool = True,
        max_concurrency: int = 5,
        rate_per_sec: float = 5.0,
        rate_burst: int = 1,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._timeout = float(timeout)
        self._verify = bool(verify)
        self._authenticated = bool((token or "").strip())

        self._headers = self._build_headers(token)

        self._sem = asyncio.Semaphore(max(1, int(max_concurrency)))
        self._pacer = Pacer(rate_per_sec=rate_per_sec, burst=rate_burst)
        self._rate_limiter = rate_limiter or RateLimiter()

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    async def get_contents(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        ref: Optional[str] = None,
    ) -> Contents:
        """Return the entry for a file path or the entry list for a directory path."""
        path_clean = normalize_path(path)
        ref_clean = normalize_ref(ref)
        params = {"ref": ref_clean} if ref_clean else None
        url = f"/repos/{owner}/{repo}/contents/{path_clean}" if path_clean else f"/repos/{owner}/{repo}/contents"

        async with self._create_client() as client:
            resp = await self._request(client, url, params=params)

        if resp.status_code == 404:
            raise NotFoundError(
                f"path '{path_clean}' not found within repository '{owner}/{repo}'. "
                "Check path spelling or ensure it exists"
            )
        self._raise_for_status(resp, context=f"get contents of '{path_clean}' in '{owner}/{repo}'")

        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError(f"GitHub returned invalid JSON for '{path_clean}' in '{owner}/{repo}'") from e

        if isinstance(data, list):
            return [self._entry(item) for item in data if isinstance(item, dict)]
        if isinstance(data, dict):
            return self._entry(data, with_content=True)
        raise TransportError(f"Unexpected contents payload for '{path_clean}' in '{owner}/{repo}'")

    # --- Decoding helpers ---

    def _entry(self, item: Mapping[str, Any], *, with_content: bool = False) -> ContentEntry:
        content: Optional[bytes] = None
        if with_content and item.get("type") == "file":
            content = self._decode_content(item)
        return ContentEntry(
            name=str(item.get("name") or ""),
            path=str(item.get("path") or ""),
            type=str(item.get("type") or ""),
            content=content,
        )

    @staticmethod
    def _decode_content(item: Mapping[str, Any]) -> bytes:
        raw = item.get("content")
        encoding = item.get("encoding") or "base64"
        path = item.get("path") or item.get("name") or "?"
        if raw is None:
            # Files above 1 MB come back without an inline body
            raise TransportError(f"GitHub returned no content for file '{path}'")
        if encoding != "base64":
            raise TransportError(f"Unsupported content encoding '{encoding}' for file '{path}'")
        try:
            return base64.b64decode(str(raw), validate=False)
        except (binascii.Error, ValueError) as e:
            raise TransportError(f"failed to decode content for file '{path}'") from e

    # --- HTTP helpers ---

    def _build_headers(self, token: Optional[str]) -> dict[str, str]:
        headers = {
            "Accept": self.JSON_ACCEPT,
            "X-GitHub-Api-Version": self.API_VERSION,
            "User-Agent": "protogather",
        }
        token_clean = (token or "").strip()
        if token_clean:
            headers["Authorization"] = f"Bearer {token_clean}"
        return headers

    def _create_client(self, custom_headers: Optional[Mapping[str, str]] = None) -> httpx.AsyncClient:
        headers = {**self._headers, **dict(custom_headers or {})}
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
            verify=self._verify,
        )

    def _external(self, context: str, err: BaseException) -> TransportError:
        return TransportError(f"GitHub request failed ({context}): {err}")

    def _raise_for_status(self, resp: httpx.Response, *, context: str) -> None:
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise self._external(context, e) from e

    async def _request(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """GET with pacing + concurrency + bounded retries for explicit throttling signals."""
        attempts = self._MAX_RATE_LIMIT_RETRIES + 1

        for attempt in range(attempts):
            await self._pacer.wait()

            try:
                async with self._sem:
                    logger.debug("GET %s %s", url, dict(params or {}))
                    resp = await client.get(url, params=dict(params or {}))
            except httpx.HTTPError as e:
                raise self._external(f"GET {url}", e) from e

            if attempt < attempts - 1:
                should_retry = await self._rate_limiter.maybe_sleep_and_retry(resp)
                if should_retry:
                    continue

            return resp

        raise RuntimeError("Unreachable: _request did not return a response")
