import os
import stat

import pytest

from sources.local_source import LocalTreeCopier, copy_proto_tree
from core.errors import FilesystemError


def _make_tree(root):
    (root / "events").mkdir(parents=True)
    (root / "events" / "user.proto").write_text('import "events/common.proto";\n', encoding="utf-8")
    (root / "events" / "common.proto").write_text("message Common {}\n", encoding="utf-8")
    (root / "events" / "README.md").write_text("docs", encoding="utf-8")
    (root / "top.proto").write_text("message Top {}\n", encoding="utf-8")
    (root / "notes.txt").write_text("x", encoding="utf-8")


def test_copy_proto_tree_filters_by_extension(tmp_path):
    src = tmp_path / "src"
    dst = tmp_path / "dst"
    _make_tree(src)

    count = copy_proto_tree(src, dst)

    assert count == 3
    copied = sorted(p.relative_to(dst).as_posix() for p in dst.rglob("*") if p.is_file())
    assert copied == ["events/common.proto", "events/user.proto", "top.proto"]


def test_copy_proto_tree_does_not_rewrite_imports(tmp_path):
    src = tmp_path / "src"
    dst = tmp_path / "dst"
    _make_tree(src)

    copy_proto_tree(src, dst)

    assert (dst / "events" / "user.proto").read_text(encoding="utf-8") == 'import "events/common.proto";\n'


def test_copy_proto_tree_overwrites_existing_files(tmp_path):
    src = tmp_path / "src"
    dst = tmp_path / "dst"
    _make_tree(src)
    dst.mkdir()
    (dst / "top.proto").write_text("stale", encoding="utf-8")

    copy_proto_tree(src, dst)

    assert (dst / "top.proto").read_text(encoding="utf-8") == "message Top {}\n"


def test_copy_proto_tree_preserves_directory_permissions(tmp_path):
    src = tmp_path / "src"
    dst = tmp_path / "dst"
    _make_tree(src)
    os.chmod(src / "events", 0o750)

    copy_proto_tree(src, dst)

    assert stat.S_IMODE((dst / "events").stat().st_mode) == 0o750


def test_copy_proto_tree_missing_source(tmp_path):
    with pytest.raises(FilesystemError) as exc:
        copy_proto_tree(tmp_path / "nope", tmp_path / "dst")
    assert "nope" in str(exc.value)


def test_copy_proto_tree_wraps_write_failure_with_path(tmp_path, monkeypatch):
    src = tmp_path / "src"
    _make_tree(src)

    import sources.local_source as local_mod

    def boom(a, b):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(local_mod.shutil, "copyfile", boom)

    with pytest.raises(FilesystemError) as exc:
        copy_proto_tree(src, tmp_path / "dst")
    assert ".proto" in str(exc.value)


@pytest.mark.asyncio
async def test_local_tree_copier_runs_copy(tmp_path):
    src = tmp_path / "src"
    _make_tree(src)

    count = await LocalTreeCopier().copy(src, tmp_path / "dst")

    assert count == 3
    assert (tmp_path / "dst" / "events" / "user.proto").is_file()
