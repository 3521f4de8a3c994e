# src/resources/generator_templates.py

from pathlib import Path
from typing import Dict

from mcp.server.fastmcp import FastMCP


BASE_DIR = Path(__file__).parent

BUF_YAML = "buf.yaml"
BUF_GEN_GO_YAML = "buf.gen.go.yaml"
BUF_GEN_JS_YAML = "buf.gen.js.yaml"

TEMPLATE_NAMES = (BUF_YAML, BUF_GEN_GO_YAML, BUF_GEN_JS_YAML)


def read_default(name: str) -> str:
    """Return the embedded default template `name`."""
    if name not in TEMPLATE_NAMES:
        raise KeyError(name)
    return (BASE_DIR / name).read_text(encoding="utf-8")


def read_defaults() -> Dict[str, str]:
    return {name: read_default(name) for name in TEMPLATE_NAMES}


def register_resources(mcp: FastMCP) -> None:
    """
    Register the embedded buf templates as read-only MCP resources.
    """

    @mcp.resource(
        "protogather://templates/buf.yaml",
        mime_type="text/yaml",
        description="Default buf module configuration written into every workspace",
    )
    def buf_yaml() -> str:
        return read_default(BUF_YAML)

    @mcp.resource(
        "protogather://templates/buf.gen.go.yaml",
        mime_type="text/yaml",
        description="Default buf generate template for Go output",
    )
    def buf_gen_go_yaml() -> str:
        return read_default(BUF_GEN_GO_YAML)

    @mcp.resource(
        "protogather://templates/buf.gen.js.yaml",
        mime_type="text/yaml",
        description="Default buf generate template for JS/TS output",
    )
    def buf_gen_js_yaml() -> str:
        return read_default(BUF_GEN_JS_YAML)
