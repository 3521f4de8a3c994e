import pytest

from core.imports import ImportRewriteRule, rewrite_imports, rule_for


RULE = ImportRewriteRule(original_root="proto", replacement_prefix="R")


def test_rewrite_plain_import():
    src = b'syntax = "proto3";\nimport "proto/foo.proto";\n'
    out = rewrite_imports(src, RULE)
    assert b'import "R/proto/foo.proto";' in out


def test_rewrite_leaves_unrelated_proto_strings_alone():
    src = (
        b'syntax = "proto3";\n'
        b'package proto.events;\n'
        b'import "proto/foo.proto";\n'
        b'option go_package = "example.com/proto/events";\n'
        b'// see proto/foo.proto for details\n'
        b'message X { string proto = 1; }\n'
    )
    out = rewrite_imports(src, RULE)
    assert out.count(b"R/proto/") == 1
    assert b'option go_package = "example.com/proto/events";' in out
    assert b"// see proto/foo.proto for details" in out
    assert b"package proto.events;" in out


def test_rewrite_public_and_weak_imports():
    src = b'import public "proto/a.proto";\nimport weak "proto/b.proto";\n'
    out = rewrite_imports(src, RULE)
    assert b'import public "R/proto/a.proto";' in out
    assert b'import weak "R/proto/b.proto";' in out


def test_rewrite_ignores_other_roots_and_google_imports():
    src = b'import "google/protobuf/timestamp.proto";\nimport "other/x.proto";\nimport "protos/y.proto";\n'
    assert rewrite_imports(src, RULE) == src


def test_rewrite_without_rule_is_identity():
    src = b'import "proto/foo.proto";'
    assert rewrite_imports(src, None) is src


def test_rewrite_is_not_idempotent():
    once = rewrite_imports(b'import "proto/foo.proto";', ImportRewriteRule("proto", "proto"))
    twice = rewrite_imports(once, ImportRewriteRule("proto", "proto"))
    assert twice == b'import "proto/proto/proto/foo.proto";'


def test_rewrite_escapes_regex_characters_in_root():
    rule = ImportRewriteRule(original_root="a.b", replacement_prefix="R")
    src = b'import "a.b/x.proto";\nimport "axb/y.proto";\n'
    out = rewrite_imports(src, rule)
    assert b'import "R/a.b/x.proto";' in out
    assert b'import "axb/y.proto";' in out


@pytest.mark.parametrize(
    "relative, expected",
    [
        ("events/user.proto", "events"),
        ("proto/v1/service.proto", "proto"),
        ("top.proto", None),
        ("", None),
    ],
)
def test_rule_for_derives_first_segment(relative, expected):
    rule = rule_for(relative, "R")
    if expected is None:
        assert rule is None
    else:
        assert rule == ImportRewriteRule(original_root=expected, replacement_prefix="R")


def test_rule_for_override_wins():
    assert rule_for("top.proto", "R", override="api/") == ImportRewriteRule("api", "R")
    assert rule_for("events/x.proto", "R", override="api") == ImportRewriteRule("api", "R")
