"""
Tests for the REST API routes.

Uses FastAPI TestClient against a real plans directory in a temp root.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from storage.plan_store import PlanConfig, resolve_plan_path

H = "<!-- long-term-plan:format=v1 -->"


@pytest.fixture
def client(tmp_path):
    config = PlanConfig(root_dir=tmp_path)
    path = resolve_plan_path(config, "work")
    path.parent.mkdir(parents=True)
    path.write_text(
        f"{H}\n\n# Work\n\n"
        "- [ ] Write report <!-- long-term-plan:id=t_report -->\n"
        "- [*] Review PR <!-- long-term-plan:id=t_review -->\n",
        encoding="utf-8",
    )
    return TestClient(create_app(config))


class TestPlanRoutes:
    def test_list_and_create(self, client):
        resp = client.post("/api/plans", json={"title": "Garden", "template": "empty"})
        assert resp.status_code == 201
        assert resp.json()["plan_id"] == "garden"

        resp = client.get("/api/plans")
        assert resp.status_code == 200
        assert [p["plan_id"] for p in resp.json()] == ["garden", "work"]

        resp = client.get("/api/plans", params={"query": "gard"})
        assert [p["plan_id"] for p in resp.json()] == ["garden"]

    def test_create_existing(self, client):
        resp = client.post("/api/plans", json={"title": "Work", "plan_id": "work"})
        assert resp.status_code == 409
        assert resp.json()["detail"]["code"] == "PLAN_EXISTS"

    def test_get(self, client):
        resp = client.get("/api/plans/work", params={"view": "flat"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["plan"]["title"] == "Work"
        assert [t["id"] for t in body["plan"]["tasks"]] == ["t_report", "t_review"]

    def test_get_missing_and_invalid(self, client):
        assert client.get("/api/plans/ghost").status_code == 404
        assert client.get("/api/plans/bad.id").status_code == 400
        assert client.get("/api/plans/work", params={"view": "graph"}).status_code == 400

    def test_update(self, client):
        etag = client.get("/api/plans/work").json()["etag"]
        resp = client.patch("/api/plans/work", json={"body_markdown": "Goals", "if_match": etag})
        assert resp.status_code == 200
        assert resp.json()["changed"] is True

        resp = client.patch("/api/plans/work", json={"title": "Again", "if_match": etag})
        assert resp.status_code == 409


class TestTaskRoutes:
    def test_add_get_update_delete(self, client):
        resp = client.post("/api/plans/work/tasks", json={"title": "New", "parent_task_id": "t_report"})
        assert resp.status_code == 201
        task_id = resp.json()["task_id"]

        task = client.get(f"/api/plans/work/tasks/{task_id}").json()["task"]
        assert task["parent_id"] == "t_report"

        resp = client.patch(f"/api/plans/work/tasks/{task_id}", json={"status": "done"})
        assert resp.status_code == 200
        assert resp.json()["changed"] is True

        resp = client.delete("/api/plans/work/tasks/t_report")
        assert resp.status_code == 200
        assert client.get(f"/api/plans/work/tasks/{task_id}").status_code == 404

    def test_current_task(self, client):
        current = client.get("/api/plans/work/current-task").json()
        assert current["task"]["id"] == "t_review"

        resp = client.patch("/api/plans/work/current-task", json={"status": "done"})
        assert resp.status_code == 400

        resp = client.patch(
            "/api/plans/work/current-task",
            json={"status": "done", "allow_default_target": True, "if_match": current["etag"]},
        )
        assert resp.status_code == 200
        assert resp.json()["task_id"] == "t_review"
        assert client.get("/api/plans/work/current-task").json()["task"]["id"] == "t_report"

    def test_stale_delete(self, client):
        resp = client.delete("/api/plans/work/tasks/t_report", params={"if_match": "stale"})
        assert resp.status_code == 409
        assert resp.json()["detail"]["code"] == "CONFLICT"

    def test_add_refused_on_invalid_document(self, client, tmp_path):
        path = resolve_plan_path(PlanConfig(root_dir=tmp_path), "work")
        path.write_text(path.read_text(encoding="utf-8") + "- [ ] dup <!-- long-term-plan:id=t_report -->\n",
                        encoding="utf-8")
        resp = client.post("/api/plans/work/tasks", json={"title": "X"})
        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "REFUSED"

    def test_undecodable_plan_is_422(self, client, tmp_path):
        with open(resolve_plan_path(PlanConfig(root_dir=tmp_path), "work"), "ab") as fh:
            fh.write(b"\xff\xfe bad\n")
        resp = client.get("/api/plans/work")
        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "VALIDATION_FAILED"

    def test_search(self, client):
        resp = client.get("/api/tasks/search", params={"query": "REPORT", "limit": 5})
        assert resp.status_code == 200
        assert [h["task_id"] for h in resp.json()] == ["t_report"]


class TestDocRoutes:
    def test_validate_and_repair(self, client, tmp_path):
        path = resolve_plan_path(PlanConfig(root_dir=tmp_path), "work")
        path.write_text(path.read_text(encoding="utf-8") + "- [ ] Loose\n", encoding="utf-8")

        report = client.get("/api/plans/work/validate").json()
        assert [e["code"] for e in report["errors"]] == ["MISSING_TASK_ID"]

        resp = client.post("/api/plans/work/repair", json={"actions": ["addFormatHeader"]})
        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "REPAIR_FAILED"

        resp = client.post("/api/plans/work/repair", json={"actions": ["addMissingIds"]})
        assert resp.status_code == 200
        assert resp.json()["applied"] == {"add_format_header": False, "add_missing_ids": 1}
        assert client.get("/api/plans/work/validate").json()["errors"] == []
