"""
Serialization of parsed plans for callers.

Bodies are only included on request; ``has_body`` is always reported so a
caller can tell whether fetching the body is worthwhile.
"""

from typing import List

from models.plan import PlanDocument, Task, flatten_tasks

VIEWS = ("tree", "flat")


def _task_fields(task: Task, include_body: bool) -> dict:
    d = {
        "id": task.id,
        "title": task.title,
        "status": task.status,
        "section_path": list(task.section_path),
        "parent_id": task.parent_id,
        "has_body": task.has_body,
    }
    if include_body and task.has_body:
        d["body_markdown"] = task.body_markdown
    return d


def task_tree(task: Task, include_body: bool = False) -> dict:
    """Serialize a task with its nested children, depth first."""
    d = _task_fields(task, include_body)
    d["children"] = [task_tree(child, include_body) for child in task.children]
    return d


def task_row(task: Task, include_body: bool = False) -> dict:
    return _task_fields(task, include_body)


def task_detail(task: Task, include_body: bool = True) -> dict:
    d = _task_fields(task, include_body)
    d["children_count"] = len(task.children)
    return d


def render_tasks(document: PlanDocument, view: str, include_bodies: bool) -> List[dict]:
    if view == "flat":
        return [task_row(t, include_bodies) for t in flatten_tasks(document.root_tasks)]
    return [task_tree(t, include_bodies) for t in document.root_tasks]
