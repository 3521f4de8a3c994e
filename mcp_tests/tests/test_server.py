import sys
import types
import uuid
import importlib.util
from pathlib import Path


def _find_server_py() -> Path:
    root = Path(__file__).resolve().parents[2]
    candidates = [
        root / "server.py",
        root / "server" / "server.py",
        root / "src" / "server" / "server.py",
    ]
    for p in candidates:
        if p.exists():
            return p
    raise FileNotFoundError(f"Could not find server.py. Tried: {candidates}")


def _install_fake_modules(monkeypatch, captures: dict):
    # ---- Fake mcp.server.fastmcp.FastMCP ----
    mcp_mod = types.ModuleType("mcp")
    mcp_server_mod = types.ModuleType("mcp.server")
    fastmcp_mod = types.ModuleType("mcp.server.fastmcp")

    class DummyFastMCP:
        def __init__(self, name: str):
            captures["fastmcp_name"] = name
            captures["mcp_instance"] = self
            self.run_calls = []

        def run(self, *, transport: str):
            self.run_calls.append({"transport": transport})
            captures["run_calls"] = list(self.run_calls)

    fastmcp_mod.FastMCP = DummyFastMCP
    mcp_mod.__path__ = []
    mcp_server_mod.__path__ = []

    monkeypatch.setitem(sys.modules, "mcp", mcp_mod)
    monkeypatch.setitem(sys.modules, "mcp.server", mcp_server_mod)
    monkeypatch.setitem(sys.modules, "mcp.server.fastmcp", fastmcp_mod)

    def _ensure_pkg(name: str):
        pkg = types.ModuleType(name)
        pkg.__path__ = []
        monkeypatch.setitem(sys.modules, name, pkg)

    _ensure_pkg("tools")
    _ensure_pkg("workspace")
    _ensure_pkg("resources")

    # ---- Fake GitHub client factory ----
    runner_mod = types.ModuleType("workspace.runner")

    def build_github_client(token=None):
        client = object()
        captures["github_client_builds"] = captures.get("github_client_builds", []) + [client]
        return client

    runner_mod.build_github_client = build_github_client
    monkeypatch.setitem(sys.modules, "workspace.runner", runner_mod)

    # ---- Fake tool + resources ----
    tool_mod = types.ModuleType("tools.assemble_protos")
    res_mod = types.ModuleType("resources.generator_templates")

    def register_assemble_protos(mcp, *, github_client=None):
        captures["register_assemble_protos_calls"] = captures.get("register_assemble_protos_calls", []) + [
            {"mcp": mcp, "github_client": github_client}
        ]

    def register_resources(mcp):
        captures["register_resources_calls"] = captures.get("register_resources_calls", []) + [{"mcp": mcp}]

    tool_mod.register = register_assemble_protos
    res_mod.register_resources = register_resources

    monkeypatch.setitem(sys.modules, "tools.assemble_protos", tool_mod)
    monkeypatch.setitem(sys.modules, "resources.generator_templates", res_mod)


def _load_server_module(monkeypatch, captures: dict):
    _install_fake_modules(monkeypatch, captures)

    server_path = _find_server_py()
    mod_name = f"server_under_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, server_path)
    assert spec and spec.loader

    module = importlib.util.module_from_spec(spec)
    monkeypatch.setitem(sys.modules, mod_name, module)
    spec.loader.exec_module(module)
    return module


def test_server_register_all_and_di(monkeypatch):
    captures = {}
    module = _load_server_module(monkeypatch, captures)

    assert captures["fastmcp_name"] == "protogather"
    mcp = captures["mcp_instance"]

    # One GitHub client is built and injected into the tool
    assert len(captures.get("github_client_builds", [])) == 1
    calls = captures.get("register_assemble_protos_calls", [])
    assert len(calls) == 1
    assert calls[0]["mcp"] is mcp
    assert calls[0]["github_client"] is captures["github_client_builds"][0]

    assert captures["register_resources_calls"] == [{"mcp": mcp}]

    module.main()
    assert captures["run_calls"] == [{"transport": "stdio"}]
