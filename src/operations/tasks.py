"""
Task-level operations: get, add, update, delete and search.

Writes follow one sequence: read, compare etag, edit in memory (which
re-validates), write atomically. A stale ``if_match`` aborts before any
parsing or editing.
"""

import logging
from typing import List, Optional, Sequence

from editor.edit import (
    apply_add_task,
    apply_delete,
    apply_rename,
    apply_set_status,
    apply_set_task_body,
    find_task,
    require_parsed,
)
from models.errors import AmbiguousTargetError, InvalidRequestError, NoDefaultTaskError
from models.plan import PlanDocument, Task
from operations.common import commit, read_for_write
from operations.plans import list_plans
from operations.views import task_detail
from parsers.plan_parser import parse_plan
from storage.plan_store import PlanConfig, read_plan_file
from utils.formatting import status_to_symbol
from utils.ids import assert_safe_id

log = logging.getLogger(__name__)

SEARCH_LIMIT_DEFAULT = 50
SEARCH_LIMIT_MAX = 500


# ---------------------------------------------------------------------------
# Default target
# ---------------------------------------------------------------------------

def select_default_task(document: PlanDocument, *, for_write: bool = False) -> Task:
    """
    Pick the task an id-less call refers to.

    The first ``doing`` task wins, else the first task that is not ``done``.
    Writes refuse to choose when several tasks are ``doing``.
    """
    tasks = document.all_tasks()
    doing = [t for t in tasks if t.status == "doing"]
    if for_write and len(doing) > 1:
        ids = ", ".join(t.id for t in doing)
        raise AmbiguousTargetError(f"Ambiguous default target: multiple doing tasks ({ids})")
    if doing:
        return doing[0]
    for task in tasks:
        if task.status != "done":
            return task
    raise NoDefaultTaskError("No unfinished tasks found")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_task(
    config: PlanConfig,
    plan_id: str,
    task_id: Optional[str] = None,
    *,
    include_body: bool = True,
) -> dict:
    if task_id is not None:
        assert_safe_id("task_id", task_id)
    plan_file = read_plan_file(config, plan_id)
    document = require_parsed(plan_file.text)
    task = find_task(document, task_id) if task_id is not None else select_default_task(document)
    return {"task": task_detail(task, include_body), "etag": plan_file.etag}


def search_tasks(
    config: PlanConfig,
    query: str,
    *,
    status: Optional[str] = None,
    plan_id: Optional[str] = None,
    limit: int = SEARCH_LIMIT_DEFAULT,
) -> List[dict]:
    """
    Case-insensitive title search, across every plan unless ``plan_id`` is given.

    Plans that do not parse are skipped. ``limit`` is clamped to [1, 500].
    """
    needle = query.strip().lower()
    if not needle:
        return []
    if status is not None:
        status_to_symbol(status)
    limit = max(1, min(SEARCH_LIMIT_MAX, int(limit)))

    plan_ids = [plan_id] if plan_id else [p["plan_id"] for p in list_plans(config)]
    hits = []
    for pid in plan_ids:
        parsed = parse_plan(read_plan_file(config, pid).text)
        if not parsed.ok:
            log.debug("Search skipping invalid plan %s", pid)
            continue
        for task in parsed.document.all_tasks():
            if status and task.status != status:
                continue
            if needle not in task.title.lower():
                continue
            hits.append({
                "plan_id": pid,
                "task_id": task.id,
                "title": task.title,
                "status": task.status,
                "section_path": list(task.section_path),
            })
            if len(hits) >= limit:
                return hits
    return hits


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def add_task(
    config: PlanConfig,
    plan_id: str,
    title: str,
    *,
    status: str = "todo",
    section_path: Optional[Sequence[str]] = None,
    parent_task_id: Optional[str] = None,
    before_task_id: Optional[str] = None,
    body_markdown: Optional[str] = None,
    if_match: Optional[str] = None,
) -> dict:
    for kind, value in (("parent_task_id", parent_task_id), ("before_task_id", before_task_id)):
        if value is not None:
            assert_safe_id(kind, value)

    plan_file = read_for_write(config, plan_id, if_match)
    result = apply_add_task(
        plan_file.text,
        title=title,
        status=status,
        section_path=section_path,
        parent_task_id=parent_task_id,
        before_task_id=before_task_id,
        body_markdown=body_markdown,
    )
    etag = commit(plan_file, result.new_text)
    log.info("Added task %s to plan %s (etag %s)", result.task_id, plan_id, etag[:12])
    return {"task_id": result.task_id, "etag": etag}


def update_task(
    config: PlanConfig,
    plan_id: str,
    task_id: Optional[str] = None,
    *,
    status: Optional[str] = None,
    title: Optional[str] = None,
    body_markdown: Optional[str] = None,
    clear_body: bool = False,
    allow_default_target: bool = False,
    if_match: Optional[str] = None,
) -> dict:
    """
    Change status, title and/or body of one task in a single write.

    Without ``task_id`` the default target is used, which requires both
    ``allow_default_target`` and ``if_match``.
    """
    if status is None and title is None and body_markdown is None and not clear_body:
        raise InvalidRequestError(
            "Nothing to update (expected status, title, body_markdown or clear_body)"
        )
    if body_markdown is not None and clear_body:
        raise InvalidRequestError("body_markdown and clear_body are mutually exclusive")
    if task_id is None:
        if not allow_default_target:
            raise InvalidRequestError("task_id is required unless allow_default_target is set")
        if not if_match:
            raise InvalidRequestError("if_match is required when targeting the default task")
    else:
        assert_safe_id("task_id", task_id)

    plan_file = read_for_write(config, plan_id, if_match)
    text = plan_file.text
    if task_id is None:
        task_id = select_default_task(require_parsed(text), for_write=True).id

    if status is not None:
        text = apply_set_status(text, task_id, status).new_text
    if title is not None:
        text = apply_rename(text, task_id, title).new_text
    if body_markdown is not None or clear_body:
        text = apply_set_task_body(text, task_id, None if clear_body else body_markdown).new_text

    etag = commit(plan_file, text)
    changed = text != plan_file.text
    if changed:
        log.info("Updated task %s in plan %s (etag %s)", task_id, plan_id, etag[:12])
    return {"task_id": task_id, "etag": etag, "changed": changed}


def delete_task(
    config: PlanConfig,
    plan_id: str,
    task_id: str,
    *,
    if_match: Optional[str] = None,
) -> dict:
    """Remove the task together with its body and nested tasks."""
    assert_safe_id("task_id", task_id)
    plan_file = read_for_write(config, plan_id, if_match)
    result = apply_delete(plan_file.text, task_id)
    etag = commit(plan_file, result.new_text)
    log.info("Deleted task %s from plan %s (etag %s)", task_id, plan_id, etag[:12])
    return {"task_id": task_id, "etag": etag}
