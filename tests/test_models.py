"""
Tests for domain models — ToolRecord, name derivation and Receipt.
"""

import pytest
from pydantic import ValidationError

from bussin.core.models import (
    APT_DEST,
    Receipt,
    ToolKind,
    ToolRecord,
    derive_tool_name,
    infer_kind,
    normalize_dest,
)


class TestNormalizeDest:
    def test_strips_leading_separator(self):
        assert normalize_dest("/abs/path") == "abs/path"

    def test_strips_repeated_separators(self):
        assert normalize_dest("///opt/tool") == "opt/tool"

    def test_empty_means_root(self):
        assert normalize_dest("") == "."
        assert normalize_dest("   ") == "."
        assert normalize_dest("/") == "."

    def test_relative_unchanged(self):
        assert normalize_dest("bin/tools") == "bin/tools"

    def test_parent_segment_rejected(self):
        with pytest.raises(ValueError, match="under the install root"):
            normalize_dest("../../etc/x")
        with pytest.raises(ValueError):
            normalize_dest("tools/../../x")

    def test_dots_inside_names_allowed(self):
        assert normalize_dest("tool..v2/bin") == "tool..v2/bin"


class TestToolRecord:
    def test_minimal(self):
        record = ToolRecord(name="rg", kind="binary", source="https://example.com/rg")
        assert record.relative_dest == "."
        assert record.kind == ToolKind.BINARY
        assert record.checksum == ""
        assert not record.is_apt

    def test_dest_normalized(self):
        record = ToolRecord(
            name="foo", relative_dest="/abs/path", kind="git", source="https://x/foo.git"
        )
        assert record.relative_dest == "abs/path"

    def test_dest_escaping_root_rejected(self):
        with pytest.raises(ValidationError, match="under the install root"):
            ToolRecord(
                name="x", relative_dest="../../etc/x", kind="git", source="https://x/x.git"
            )

    def test_apt_forces_sentinel_dest(self):
        record = ToolRecord(name="jq", relative_dest="somewhere", kind="apt", source="jq")
        assert record.relative_dest == APT_DEST
        assert record.is_apt

    def test_apt_dest_reserved(self):
        with pytest.raises(ValidationError, match="reserved"):
            ToolRecord(name="x", relative_dest="apt", kind="binary", source="https://x/x")

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError, match="name must not be empty"):
            ToolRecord(name="  ", kind="binary", source="https://x/x")

    def test_empty_source_rejected(self):
        with pytest.raises(ValidationError):
            ToolRecord(name="x", kind="binary", source="")

    def test_delimiter_rejected(self):
        with pytest.raises(ValidationError, match="must not contain"):
            ToolRecord(name="a|b", kind="binary", source="https://x/x")

    def test_delimiter_in_checksum_rejected(self):
        with pytest.raises(ValidationError):
            ToolRecord(name="a", kind="binary", source="https://x/x", checksum="ab|cd")

    def test_newline_rejected(self):
        with pytest.raises(ValidationError):
            ToolRecord(name="a\nb", kind="binary", source="https://x/x")

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            ToolRecord(name="a", kind="snap", source="a")

    def test_fields_stripped(self):
        record = ToolRecord(name=" rg ", kind="binary", source=" https://x/rg ", checksum=" abc ")
        assert record.name == "rg"
        assert record.source == "https://x/rg"
        assert record.checksum == "abc"


class TestDeriveToolName:
    def test_git_strips_suffix(self):
        assert derive_tool_name("https://github.com/org/repo.git", "git") == "repo"

    def test_git_trailing_slash(self):
        assert derive_tool_name("https://github.com/org/repo/", ToolKind.GIT) == "repo"

    def test_binary_strips_script_suffixes(self):
        assert derive_tool_name("https://example.com/dl/tool.sh", "binary") == "tool"
        assert derive_tool_name("https://example.com/dl/tool.py", "binary") == "tool"

    def test_binary_ignores_query(self):
        assert derive_tool_name("https://example.com/dl/linpeas.sh?raw=1", "binary") == "linpeas"

    def test_binary_keeps_other_extensions(self):
        assert derive_tool_name("https://example.com/tool.tar.gz", "binary") == "tool.tar.gz"

    def test_apt_is_package(self):
        assert derive_tool_name("jq", "apt") == "jq"


class TestInferKind:
    def test_git(self):
        assert infer_kind("https://github.com/org/repo.git") == ToolKind.GIT

    def test_binary(self):
        assert infer_kind("https://github.com/org/repo/releases/download/v1/tool") == ToolKind.BINARY


class TestReceipt:
    def test_success(self):
        r = Receipt.success(backend="git", tool="foo", output="done")
        assert r.ok and not r.failed and not r.skipped
        assert r.output == "done"
        assert r.error is None

    def test_failure(self):
        r = Receipt.failure(backend="binary", tool="foo", error="boom", error_kind="FetchFailed")
        assert r.failed
        assert r.error == "boom"
        assert r.error_kind == "FetchFailed"

    def test_failure_default_kind(self):
        r = Receipt.failure(backend="binary", tool="foo", error="boom")
        assert r.error_kind == "Error"

    def test_skip(self):
        r = Receipt.skip(backend="apt", tool="jq", reason="not updatable", operation="update")
        assert r.skipped
        assert r.output == "not updatable"
        assert r.operation == "update"

    def test_json_dump(self):
        r = Receipt.success(backend="git", tool="foo", metadata={"transition": "clone"})
        data = r.model_dump(mode="json")
        assert data["status"] == "ok"
        assert data["metadata"]["transition"] == "clone"
