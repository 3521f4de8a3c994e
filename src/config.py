"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
project-level configuration constants (GitHub access, clone behavior,
parallelism and template locations). Values are read once at import and
passed explicitly into clients, fetchers and the assembler.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_path(name: str, default: Optional[str]) -> Optional[Path]:
    raw = (os.environ.get(name) or "").strip() or default
    if not raw:
        return None
    return Path(raw).expanduser()


# GitHub API
GITHUB_TOKEN = (os.environ.get("GITHUB_TOKEN") or "").strip()
GITHUB_API_URL = os.environ.get("GITHUB_API_URL", "https://api.github.com").strip().rstrip("/")
GITHUB_TIMEOUT = _env_float("GITHUB_TIMEOUT", 20.0)
GITHUB_MAX_CONCURRENCY = _env_int("GITHUB_MAX_CONCURRENCY", 5)
GITHUB_RATE_PER_SEC = _env_float("GITHUB_RATE_PER_SEC", 5.0)
GITHUB_RATE_BURST = _env_int("GITHUB_RATE_BURST", 5)
GITHUB_MAX_RETRY_SLEEP = _env_int("GITHUB_MAX_RETRY_SLEEP", 60)

# Network / HTTP
HTTP_VERIFY = _env_bool("HTTP_VERIFY", True)

# SSH clone
GIT_CLONE_TIMEOUT = _env_float("GIT_CLONE_TIMEOUT", 300.0)
SSH_DIR = _env_path("SSH_DIR", "~/.ssh")

# Aggregation
PROTO_EXTENSION = os.environ.get("PROTO_EXTENSION", ".proto").strip() or ".proto"
MAX_PARALLEL_SOURCES = _env_int("MAX_PARALLEL_SOURCES", 4)

# Generator templates: on-disk overrides are looked up here
TEMPLATES_DIR = _env_path("TEMPLATES_DIR", ".")
# Where the MCP tool assembles when no workspace_dir is given (None -> temp dir)
WORKSPACE_DIR = _env_path("WORKSPACE_DIR", None)
