import pytest

from clients.github import ContentEntry


class DummyMCP:
    """Minimal FastMCP stand-in to capture tool and resource registration."""

    def __init__(self) -> None:
        self.tools = {}
        self.resources = {}

    def tool(self, *, name: str):
        def _decorator(fn):
            self.tools[name] = fn
            return fn
        return _decorator

    def resource(self, uri: str, **_kwargs):
        def _decorator(fn):
            self.resources[uri] = fn
            return fn
        return _decorator


class FakeContentsClient:
    """In-memory Contents API: `tree` maps repo-relative file paths to bytes."""

    def __init__(self, tree: dict, *, missing: bool = False):
        self._tree = dict(tree)
        self._missing = missing
        self.calls = []

    async def get_contents(self, *, owner: str, repo: str, path: str, ref=None):
        from core.errors import NotFoundError

        self.calls.append((owner, repo, path, ref))
        path = (path or "").strip("/")
        if self._missing:
            raise NotFoundError(f"path '{path}' not found within repository '{owner}/{repo}'")

        if path in self._tree:
            name = path.rsplit("/", 1)[-1]
            return ContentEntry(name=name, path=path, type="file", content=self._tree[path])

        prefix = f"{path}/" if path else ""
        children = {}
        for file_path in self._tree:
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):]
            head = rest.split("/", 1)[0]
            kind = "dir" if "/" in rest else "file"
            children[head] = ContentEntry(name=head, path=prefix + head, type=kind)

        if not children:
            raise NotFoundError(f"path '{path}' not found within repository '{owner}/{repo}'")
        return [children[k] for k in sorted(children)]


@pytest.fixture
def dummy_mcp():
    return DummyMCP()


@pytest.fixture
def fake_contents_client():
    return FakeContentsClient
