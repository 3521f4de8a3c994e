from __future__ import annotations

from typing import Tuple

"""
Path utilities used across the project.

Provides consistent POSIX-style normalization for in-repo paths and the
extension check that decides which files are kept.
"""

PROTO_EXTENSION = ".proto"


def normalize_posix_relpath(p: str) -> str:
    """Normalize a user path to a clean POSIX relative path.

    Converts backslashes to '/', trims whitespace, removes leading '/'
    and repeated './' markers.
    """
    s = (p or "").strip()
    s = s.replace("\\", "/")        # Unify path separators across OSes.
    s = s.lstrip("/")               # Prevent accidental absolute paths.
    while s.startswith("./"):       # Drop repeated "./" prefixes.
        s = s[2:]
    return s


def clean_root(root: str) -> str:
    """Normalize an in-repo root path.

    Treats '.', './', '/', and empty as repository root (returns '').
    """
    r = normalize_posix_relpath(root)
    if r in ("", "."):
        return ""
    return r.strip("/")


def split_posix(p: str) -> Tuple[str, ...]:
    """Split a POSIX path into non-empty segments."""
    s = (p or "").strip().replace("\\", "/").strip("/")
    if not s:
        return tuple()
    return tuple(seg for seg in s.split("/") if seg)


def relative_to_root(path: str, root: str) -> str:
    """Return `path` relative to the in-repo `root` ('' means repo root)."""
    p = clean_root(path)
    r = clean_root(root)
    if not r:
        return p
    if p == r:
        return ""
    if p.startswith(r + "/"):
        return p[len(r) + 1 :]
    return p


def is_proto_file(name: str, extension: str = PROTO_EXTENSION) -> bool:
    return (name or "").endswith(extension)
