"""Resolve and write the buf templates consumed by the downstream generator.

Resolution is per file: an on-disk override in the templates directory
wins, otherwise the embedded default from `resources` is used. Either
way every `out:` line is normalised to the `__events__` placeholder, which
`write_templates` later replaces with the requested output path.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from core.errors import FilesystemError
from core.logging import get_logger
from resources.generator_templates import (
    BUF_GEN_GO_YAML,
    BUF_GEN_JS_YAML,
    BUF_YAML,
    TEMPLATE_NAMES,
    read_default,
)

logger = get_logger("templates")

OUTPUT_PLACEHOLDER = "__events__"
PROTO_SUBDIR = "proto"

_OUT_LINE_RE = re.compile(r"^(\s*(?:-\s*)?)out:.*$", re.MULTILINE)


def normalize_template(text: str) -> str:
    return _OUT_LINE_RE.sub(rf"\g<1>out: {OUTPUT_PLACEHOLDER}", text)


@dataclass(frozen=True)
class GeneratorTemplates:
    buf_yaml: str
    buf_gen_go_yaml: str
    buf_gen_js_yaml: str
    origins: Dict[str, str]

    def as_files(self) -> Dict[str, str]:
        return {
            BUF_YAML: self.buf_yaml,
            BUF_GEN_GO_YAML: self.buf_gen_go_yaml,
            BUF_GEN_JS_YAML: self.buf_gen_js_yaml,
        }


def load_templates(override_dir: Optional[Path] = None) -> GeneratorTemplates:
    texts: Dict[str, str] = {}
    origins: Dict[str, str] = {}
    for name in TEMPLATE_NAMES:
        candidate = Path(override_dir) / name if override_dir else None
        if candidate is not None and candidate.is_file():
            try:
                raw = candidate.read_text(encoding="utf-8")
            except OSError as e:
                raise FilesystemError(f"failed to read template override '{candidate}': {e}") from e
            logger.debug("Using local %s file", name)
            origins[name] = str(candidate)
        else:
            raw = read_default(name)
            origins[name] = "embedded"
        texts[name] = normalize_template(raw)

    return GeneratorTemplates(
        buf_yaml=texts[BUF_YAML],
        buf_gen_go_yaml=texts[BUF_GEN_GO_YAML],
        buf_gen_js_yaml=texts[BUF_GEN_JS_YAML],
        origins=origins,
    )


def write_templates(workspace: Path, templates: GeneratorTemplates, output_path: str) -> None:
    for name, text in templates.as_files().items():
        target = Path(workspace) / name
        try:
            target.write_text(text.replace(OUTPUT_PLACEHOLDER, output_path), encoding="utf-8")
        except OSError as e:
            raise FilesystemError(f"failed to write {name}: {e}") from e


def prepare_workspace(workspace: Path, templates: GeneratorTemplates, output_path: str) -> Path:
    """Create the workspace layout and return the proto destination root."""
    proto_root = Path(workspace) / PROTO_SUBDIR
    try:
        proto_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"failed to create '{PROTO_SUBDIR}' subdirectory '{proto_root}': {e}") from e
    write_templates(workspace, templates, output_path)
    return proto_root
