"""
Tests for the MCP tool wrappers (tools/).

Uses a real plans directory on disk and a fake MCP object that captures the
registered functions, so tools are called directly (bypasses transport).
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from storage.plan_store import PlanConfig, resolve_plan_path
from tools import register_doc_tools, register_plan_tools, register_task_tools
from tools.common import DEFAULT_PLAN_ID

H = "<!-- long-term-plan:format=v1 -->"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _FakeMCP:
    """Minimal fake to capture tool registrations."""

    def __init__(self):
        self._tools = {}

    def tool(self, *args, **kwargs):
        """Decorator that records functions by name."""
        def decorator(fn):
            self._tools[fn.__name__] = fn
            return fn
        return decorator

    def get(self, name: str):
        return self._tools[name]


def _call(mcp: _FakeMCP, name: str, **kwargs):
    return json.loads(mcp.get(name)(**kwargs))


@pytest.fixture
def setup(tmp_path):
    config = PlanConfig(root_dir=tmp_path)
    path = resolve_plan_path(config, "work")
    path.parent.mkdir(parents=True)
    path.write_text(
        f"{H}\n\n# Work\n\n## Inbox\n"
        "- [ ] Write report <!-- long-term-plan:id=t_report -->\n"
        "- [*] Review PR <!-- long-term-plan:id=t_review -->\n",
        encoding="utf-8",
    )

    mcp = _FakeMCP()
    register_plan_tools(mcp, config)
    register_task_tools(mcp, config)
    register_doc_tools(mcp, config)
    return mcp, config


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def test_all_tools_registered(setup):
    mcp, _ = setup
    assert set(mcp._tools) == {
        "plan_list", "plan_get", "plan_create", "plan_update",
        "task_get", "task_add", "task_update", "task_start", "task_complete",
        "task_delete", "task_search",
        "doc_validate", "doc_repair",
    }


# ---------------------------------------------------------------------------
# Plan tools
# ---------------------------------------------------------------------------

class TestPlanTools:
    def test_list(self, setup):
        mcp, _ = setup
        plans = _call(mcp, "plan_list")["plans"]
        assert [p["plan_id"] for p in plans] == ["work"]
        assert plans[0]["stats"]["doing"] == 1

    def test_get_flat(self, setup):
        mcp, _ = setup
        result = _call(mcp, "plan_get", plan_id="work", view="flat")
        assert [t["id"] for t in result["plan"]["tasks"]] == ["t_report", "t_review"]
        assert len(result["etag"]) == 64

    def test_create_and_conflict(self, setup):
        mcp, _ = setup
        created = _call(mcp, "plan_create", title="Side Project")
        assert created["plan_id"] == "side-project"
        again = _call(mcp, "plan_create", title="Side Project")
        assert again["code"] == "PLAN_EXISTS"

    def test_update_with_stale_etag(self, setup):
        mcp, _ = setup
        result = _call(mcp, "plan_update", plan_id="work", title="X", if_match="0" * 64)
        assert result["code"] == "CONFLICT"
        assert result["error"].startswith("CONFLICT: etag mismatch")

    def test_get_default_plan_is_created(self, setup):
        mcp, config = setup
        result = _call(mcp, "plan_get")
        assert result["plan"]["plan_id"] == DEFAULT_PLAN_ID
        assert result["plan"]["title"] == "Active Plan"
        assert resolve_plan_path(config, DEFAULT_PLAN_ID).exists()

    def test_explicit_missing_plan_is_not_created(self, setup):
        mcp, config = setup
        result = _call(mcp, "plan_get", plan_id="ghost")
        assert result["code"] == "NOT_FOUND"
        assert not resolve_plan_path(config, "ghost").exists()

    def test_undecodable_plan_is_reported(self, setup):
        mcp, config = setup
        with open(resolve_plan_path(config, "work"), "ab") as fh:
            fh.write(b"\xff\xfe bad\n")
        result = _call(mcp, "plan_get", plan_id="work")
        assert result["code"] == "VALIDATION_FAILED"
        assert "not valid UTF-8" in result["error"]


# ---------------------------------------------------------------------------
# Task tools
# ---------------------------------------------------------------------------

class TestTaskTools:
    def test_get_default_target(self, setup):
        mcp, _ = setup
        task = _call(mcp, "task_get", plan_id="work")["task"]
        assert task["id"] == "t_review"

    def test_add_to_default_plan(self, setup):
        mcp, config = setup
        added = _call(mcp, "task_add", title="First thing", section_path=["Inbox"])
        task = _call(mcp, "task_get", task_id=added["task_id"])
        assert task["task"]["section_path"] == ["Inbox"]
        text = resolve_plan_path(config, DEFAULT_PLAN_ID).read_text(encoding="utf-8")
        assert f"- [ ] First thing <!-- long-term-plan:id={added['task_id']} -->" in text

    def test_start_and_complete(self, setup):
        mcp, _ = setup
        started = _call(mcp, "task_start", plan_id="work", task_id="t_report")
        assert started["changed"] is True
        _call(mcp, "task_complete", plan_id="work", task_id="t_review")
        statuses = {
            t["id"]: t["status"]
            for t in _call(mcp, "plan_get", plan_id="work", view="flat")["plan"]["tasks"]
        }
        assert statuses == {"t_report": "doing", "t_review": "done"}

    def test_update_default_target_requires_etag(self, setup):
        mcp, _ = setup
        result = _call(mcp, "task_update", plan_id="work", status="done", allow_default_target=True)
        assert result["code"] == "INVALID_REQUEST"

        etag = _call(mcp, "task_get", plan_id="work")["etag"]
        result = _call(
            mcp, "task_update", plan_id="work", status="done",
            allow_default_target=True, if_match=etag,
        )
        assert result["task_id"] == "t_review"

    def test_delete_unknown(self, setup):
        mcp, _ = setup
        result = _call(mcp, "task_delete", plan_id="work", task_id="t_nope")
        assert result == {"error": "Task not found: t_nope", "code": "NOT_FOUND"}

    def test_invalid_id(self, setup):
        mcp, _ = setup
        assert _call(mcp, "task_get", plan_id="work", task_id="../x")["code"] == "INVALID_ID"

    def test_search(self, setup):
        mcp, _ = setup
        hits = _call(mcp, "task_search", query="review")["hits"]
        assert [(h["plan_id"], h["task_id"]) for h in hits] == [("work", "t_review")]


# ---------------------------------------------------------------------------
# Doc tools
# ---------------------------------------------------------------------------

class TestDocTools:
    def test_validate_and_repair(self, setup):
        mcp, config = setup
        path = resolve_plan_path(config, "work")
        path.write_text(path.read_text(encoding="utf-8") + "- [ ] Loose end\n", encoding="utf-8")

        report = _call(mcp, "doc_validate", plan_id="work")
        assert [(e["code"], e["line"]) for e in report["errors"]] == [("MISSING_TASK_ID", 8)]

        dry = _call(mcp, "doc_repair", plan_id="work", actions=["addMissingIds"], dry_run=True)
        assert dry["applied"]["add_missing_ids"] == 1
        assert "Loose end <!--" not in path.read_text(encoding="utf-8")

        done = _call(mcp, "doc_repair", plan_id="work", actions=["addMissingIds"])
        assert done["dry_run"] is False
        assert _call(mcp, "doc_validate", plan_id="work")["errors"] == []

    def test_unknown_repair_action(self, setup):
        mcp, _ = setup
        result = _call(mcp, "doc_repair", plan_id="work", actions=["reformat"])
        assert result["code"] == "INVALID_REQUEST"
