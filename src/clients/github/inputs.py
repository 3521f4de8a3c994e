from __future__ import annotations

from typing import Optional

from core.errors import InvalidSpecifierError
from core.models import RepoSpecifier
from core.paths import clean_root, normalize_posix_relpath, split_posix


EXPECTED_HOST = "github.com"

_DOT_SEGMENTS = frozenset({".", ".."})


def parse_specifier(raw: str) -> RepoSpecifier:
    """Parse `github.com/<owner>/<repo>/<path>[@<branch>]` into a RepoSpecifier.

    The branch is split off at the last '@'; the path keeps any further
    '/' separators since only the first three are cut.
    """
    s = (raw or "").strip()
    repo_path, sep, branch = s.rpartition("@")
    if not sep:
        repo_path, branch = s, ""

    parts = repo_path.split("/", 3)
    if len(parts) < 4 or parts[0] != EXPECTED_HOST:
        raise InvalidSpecifierError(f"invalid repo path format: '{raw}'")

    host, owner, repo, path = parts
    if not owner.strip() or not repo.strip():
        raise InvalidSpecifierError(f"owner and repository must be non-empty: '{raw}'")
    if owner.strip() in _DOT_SEGMENTS or repo.strip() in _DOT_SEGMENTS:
        raise InvalidSpecifierError(f"owner and repository must not be relative path segments: '{raw}'")

    path = clean_root(path)
    # The path is joined under the clone and the workspace, it must not climb out
    if ".." in split_posix(path):
        raise InvalidSpecifierError(f"path must not contain '..' segments: '{raw}'")

    return RepoSpecifier(
        host=host,
        owner=owner.strip(),
        repo=repo.strip(),
        path=path,
        branch=normalize_ref(branch),
    )


def normalize_ref(ref: Optional[str]) -> Optional[str]:
    # Empty means "use the repository's default branch"
    ref_clean = (ref or "").strip()
    return ref_clean or None


def normalize_path(path: str) -> str:
    # Contents API paths: POSIX, no leading '/', '' addresses the repository root
    return normalize_posix_relpath(path).rstrip("/")
