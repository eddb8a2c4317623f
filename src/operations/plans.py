"""
Plan-level operations: list, get, create and update.

Every call re-reads the file from disk; nothing is cached between calls.
"""

import logging
from typing import List, Optional

from editor.edit import apply_set_plan_body, apply_set_plan_title, require_parsed
from models.errors import InvalidRequestError
from operations.common import FORMAT_INFO, commit, compute_stats, extract_title, read_for_write
from operations.views import VIEWS, render_tasks
from storage.plan_store import (
    PlanConfig,
    create_file_exclusive,
    iter_plan_paths,
    read_plan_file,
    read_text_exact,
    relative_to_root,
    resolve_plan_path,
    sha256_hex,
)
from utils.formatting import FORMAT_HEADER
from utils.ids import assert_safe_id, is_safe_id, slugify_plan_id

log = logging.getLogger(__name__)

PLAN_TEMPLATES = ("basic", "empty")


def list_plans(config: PlanConfig, query: Optional[str] = None) -> List[dict]:
    """
    Summarize every plan in the plans directory, sorted by plan id.

    ``query`` is a case-insensitive substring matched against id and title.
    Files with unsafe names are ignored; unreadable files are logged and skipped.
    """
    needle = (query or "").strip().lower()
    summaries = []
    for path in iter_plan_paths(config):
        plan_id = path.stem
        if not is_safe_id(plan_id):
            continue
        try:
            text = read_text_exact(path)
        except (OSError, UnicodeDecodeError) as e:
            log.warning("Skipping unreadable plan file %s: %s", path, e)
            continue

        title = extract_title(text) or plan_id
        if needle and needle not in f"{plan_id}\n{title}".lower():
            continue
        summaries.append({
            "plan_id": plan_id,
            "title": title,
            "path": relative_to_root(config, path),
            "stats": compute_stats(text),
        })

    summaries.sort(key=lambda s: s["plan_id"])
    return summaries


def get_plan(
    config: PlanConfig,
    plan_id: str,
    *,
    view: str = "tree",
    include_plan_body: bool = False,
    include_task_bodies: bool = False,
) -> dict:
    if view not in VIEWS:
        raise InvalidRequestError(f"Invalid view: {view!r} (expected one of {', '.join(VIEWS)})")
    plan_file = read_plan_file(config, plan_id)
    document = require_parsed(plan_file.text)

    plan = {
        "plan_id": plan_id,
        "title": document.title,
        "format": dict(FORMAT_INFO),
        "stats": compute_stats(plan_file.text),
        "view": view,
        "has_body": document.has_body,
    }
    if include_plan_body and document.has_body:
        plan["body_markdown"] = document.body_markdown
    plan["tasks"] = render_tasks(document, view, include_task_bodies)
    return {"plan": plan, "etag": plan_file.etag}


def render_template(title: str, template: str) -> str:
    parts = [FORMAT_HEADER, "", f"# {title}", ""]
    if template == "basic":
        parts.extend(["## Inbox", ""])
    return "\n".join(parts) + "\n"


def create_plan(
    config: PlanConfig,
    title: str,
    *,
    plan_id: Optional[str] = None,
    template: str = "basic",
) -> dict:
    """Create a new plan file; fails with PlanExistsError if the id is taken."""
    if template not in PLAN_TEMPLATES:
        raise InvalidRequestError(
            f"Invalid template: {template!r} (expected one of {', '.join(PLAN_TEMPLATES)})"
        )
    plan_id = plan_id or slugify_plan_id(title)
    assert_safe_id("plan_id", plan_id)

    clean_title = " ".join(title.split()) or plan_id
    text = render_template(clean_title, template)
    path = resolve_plan_path(config, plan_id)
    create_file_exclusive(path, text)

    etag = sha256_hex(text)
    log.info("Created plan %s (%s template, etag %s)", plan_id, template, etag[:12])
    return {"plan_id": plan_id, "path": relative_to_root(config, path), "etag": etag}


def update_plan(
    config: PlanConfig,
    plan_id: str,
    *,
    title: Optional[str] = None,
    body_markdown: Optional[str] = None,
    clear_body: bool = False,
    if_match: Optional[str] = None,
) -> dict:
    """Set the plan title and/or set or clear the plan body."""
    if title is None and body_markdown is None and not clear_body:
        raise InvalidRequestError("Nothing to update (expected title, body_markdown or clear_body)")
    if body_markdown is not None and clear_body:
        raise InvalidRequestError("body_markdown and clear_body are mutually exclusive")

    plan_file = read_for_write(config, plan_id, if_match)
    text = plan_file.text
    if title is not None:
        text = apply_set_plan_title(text, title).new_text
    if body_markdown is not None or clear_body:
        text = apply_set_plan_body(text, None if clear_body else body_markdown).new_text

    etag = commit(plan_file, text)
    changed = text != plan_file.text
    if changed:
        log.info("Updated plan %s (etag %s)", plan_id, etag[:12])
    return {"plan_id": plan_id, "etag": etag, "changed": changed}
