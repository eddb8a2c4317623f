"""
Tests for storage/plan_store.py.

Covers root containment, symlinked plans directories, etags, CRLF-preserving
reads and writes, atomic replace and create-only writes.
"""

import hashlib
import os
import stat
import sys
from pathlib import Path

# Add src to path so imports work without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from models.errors import (
    InvalidIdError,
    PathEscapeError,
    PlanExistsError,
    PlanNotFoundError,
    PlanValidationError,
)
from storage.plan_store import (
    PlanConfig,
    create_file_exclusive,
    iter_plan_paths,
    read_plan_file,
    relative_to_root,
    resolve_plan_path,
    resolve_plans_dir,
    sha256_hex,
    write_file_atomic,
)


@pytest.fixture
def config(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    return PlanConfig(root_dir=root)


class TestPathResolution:
    def test_default_plans_dir(self, config):
        assert resolve_plans_dir(config) == config.root / ".long-term-plan"
        path = resolve_plan_path(config, "roadmap")
        assert path == config.root / ".long-term-plan" / "roadmap.md"
        assert relative_to_root(config, path) == ".long-term-plan/roadmap.md"

    @pytest.mark.parametrize("plan_id", ["../x", "a/b", "", ".hidden", "x.md"])
    def test_unsafe_plan_ids(self, config, plan_id):
        with pytest.raises(InvalidIdError):
            resolve_plan_path(config, plan_id)

    @pytest.mark.parametrize("plans_dir", ["..", "../outside", "plans/../../up"])
    def test_plans_dir_escape(self, config, plans_dir):
        cfg = PlanConfig(root_dir=config.root_dir, plans_dir=plans_dir)
        with pytest.raises(PathEscapeError):
            resolve_plans_dir(cfg)

    def test_absolute_plans_dir_outside_root(self, config, tmp_path):
        cfg = PlanConfig(root_dir=config.root_dir, plans_dir=str(tmp_path / "elsewhere"))
        with pytest.raises(PathEscapeError):
            resolve_plan_path(cfg, "x")

    def test_nested_plans_dir_allowed(self, config):
        cfg = PlanConfig(root_dir=config.root_dir, plans_dir="docs/plans/../plans")
        assert resolve_plans_dir(cfg) == config.root / "docs" / "plans"

    def test_root_itself_allowed(self, config):
        cfg = PlanConfig(root_dir=config.root_dir, plans_dir=".")
        assert resolve_plan_path(cfg, "p") == config.root / "p.md"

    def test_symlinked_plans_dir_is_followed(self, config, tmp_path):
        outside = tmp_path / "shared-plans"
        outside.mkdir()
        os.symlink(outside, config.root / ".long-term-plan")

        path = resolve_plan_path(config, "p")
        write_file_atomic(path, "hello\n")
        assert (outside / "p.md").read_text(encoding="utf-8") == "hello\n"
        assert read_plan_file(config, "p").text == "hello\n"


class TestReadWrite:
    def test_etag_is_sha256_of_text(self, config):
        text = "# Plan ✓\r\n"
        write_file_atomic(resolve_plan_path(config, "p"), text)
        plan_file = read_plan_file(config, "p")
        assert plan_file.text == text
        assert plan_file.etag == hashlib.sha256(text.encode("utf-8")).hexdigest()
        assert plan_file.etag == sha256_hex(text)

    def test_crlf_bytes_preserved(self, config):
        path = resolve_plan_path(config, "p")
        write_file_atomic(path, "a\r\nb\n")
        assert path.read_bytes() == b"a\r\nb\n"

    def test_missing_plan(self, config):
        with pytest.raises(PlanNotFoundError, match="nope"):
            read_plan_file(config, "nope")

    def test_atomic_replace_leaves_no_temp_files(self, config):
        path = resolve_plan_path(config, "p")
        write_file_atomic(path, "one\n")
        write_file_atomic(path, "two\n")
        assert path.read_text(encoding="utf-8") == "two\n"
        assert sorted(p.name for p in path.parent.iterdir()) == ["p.md"]

    def test_create_only(self, config):
        path = resolve_plan_path(config, "p")
        create_file_exclusive(path, "first\n")
        with pytest.raises(PlanExistsError):
            create_file_exclusive(path, "second\n")
        assert path.read_text(encoding="utf-8") == "first\n"
        assert sorted(p.name for p in path.parent.iterdir()) == ["p.md"]

    def test_not_utf8(self, config):
        path = resolve_plan_path(config, "p")
        write_file_atomic(path, "# P\n")
        with open(path, "ab") as fh:
            fh.write(b"\xff\xfe bad\n")
        with pytest.raises(PlanValidationError, match="not valid UTF-8: p"):
            read_plan_file(config, "p")


class TestFileMode:
    @pytest.fixture(autouse=True)
    def umask_022(self):
        old = os.umask(0o022)
        yield
        os.umask(old)

    def _mode(self, path):
        return stat.S_IMODE(os.stat(path).st_mode)

    def test_create_follows_umask(self, config):
        path = resolve_plan_path(config, "p")
        create_file_exclusive(path, "x\n")
        assert self._mode(path) == 0o644

    def test_replace_keeps_existing_mode(self, config):
        path = resolve_plan_path(config, "p")
        write_file_atomic(path, "one\n")
        assert self._mode(path) == 0o644
        os.chmod(path, 0o640)
        write_file_atomic(path, "two\n")
        assert self._mode(path) == 0o640


class TestListing:
    def test_iter_plan_paths(self, config):
        assert list(iter_plan_paths(config)) == []
        plans_dir = resolve_plans_dir(config)
        plans_dir.mkdir()
        for name in ("b.md", "a.md", "notes.txt"):
            (plans_dir / name).write_text("x", encoding="utf-8")
        (plans_dir / "dir.md").mkdir()
        assert [p.name for p in iter_plan_paths(config)] == ["a.md", "b.md"]
