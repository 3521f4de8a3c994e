"""Import-path rewriting for proto files merged from several repositories.

Files fetched from repository `R` land under `<root>/R/...`, so an import
such as `import "events/user.proto";` written against R's own layout must
become `import "R/events/user.proto";` to stay resolvable. The rewrite is
purely textual and anchored to the import declaration syntax.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Pattern

from core.paths import split_posix


@dataclass(frozen=True)
class ImportRewriteRule:
    original_root: str
    replacement_prefix: str

    @property
    def replacement_root(self) -> str:
        return f"{self.replacement_prefix}/{self.original_root}"


@lru_cache(maxsize=256)
def _import_pattern(original_root: str) -> Pattern[bytes]:
    # A compile failure here is a programming error, let it propagate.
    root = re.escape(original_root.encode("utf-8"))
    return re.compile(rb"""(\bimport\s*(?:(?:public|weak)\s+)?["'])""" + root + rb"/")


def rewrite_imports(content: bytes, rule: Optional[ImportRewriteRule]) -> bytes:
    """Prefix every `import "<root>/..."` with the rule's replacement prefix.

    Not idempotent: applying the same rule twice double-prefixes.
    """
    if rule is None or not rule.original_root:
        return content

    pattern = _import_pattern(rule.original_root)
    replacement = rule.replacement_root.encode("utf-8")
    return pattern.sub(lambda m: m.group(1) + replacement + b"/", content)


def rule_for(
    relative_path: str,
    repo: str,
    *,
    override: Optional[str] = None,
) -> Optional[ImportRewriteRule]:
    """Derive the rewrite rule for a file at `relative_path` inside the fetched subtree.

    The original root segment is the explicit `override` when given,
    otherwise the first directory of the file's relative path. Files
    directly in the subtree root get no derived rule.
    """
    if override:
        root = override.strip().strip("/")
        return ImportRewriteRule(original_root=root, replacement_prefix=repo) if root else None

    parts = split_posix(relative_path)
    if len(parts) < 2:
        return None
    return ImportRewriteRule(original_root=parts[0], replacement_prefix=repo)
