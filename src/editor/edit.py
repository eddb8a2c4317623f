"""
Minimal-diff editor for plan markdown v1.

Every edit follows the same shape:
    parse (or refuse) → locate the target by id → mutate a copy of the line
    array → rejoin with the original newline style → re-validate.

Only the lines an edit is about are touched; everything else is byte-identical
before and after. An edit whose output fails validation raises instead of
returning the text.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from models.diagnostics import MISSING_FORMAT_HEADER, describe_all
from models.errors import (
    EditRefusedError,
    InvalidRequestError,
    PlanValidationError,
    TaskNotFoundError,
)
from models.plan import LineRange, PlanDocument, Task
from parsers.plan_parser import parse_plan, parse_task_line_strict
from parsers.validator import validate_plan
from utils.formatting import (
    FORMAT_HEADER,
    encode_body,
    find_format_header,
    render_task_line,
    sanitize_plan_title,
    sanitize_section_name,
    sanitize_task_title,
    status_to_symbol,
)
from utils.ids import generate_unique_task_id
from utils.lines import SplitText, is_blank, split_lines

_STATUS_RE = re.compile(r"^( *- \[)[ *√](\] )")
_TITLE_PREFIX_RE = re.compile(r"^( *- \[[ *√]\] )")
_TITLE_SUFFIX_RE = re.compile(r"(\s+<!--\s*long-term-plan:id=[A-Za-z0-9_-]+\s*-->\s*)$")


@dataclass
class EditResult:
    new_text: str
    changed: bool


@dataclass
class AddTaskResult:
    task_id: str
    new_text: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def require_parsed(text: str) -> PlanDocument:
    """Parse ``text`` or raise PlanValidationError listing every parse error."""
    parsed = parse_plan(text)
    if not parsed.ok or parsed.document is None:
        message = describe_all(parsed.errors) or "Failed to parse plan"
        raise PlanValidationError(message, parsed.errors)
    return parsed.document


def find_task(document: PlanDocument, task_id: str) -> Task:
    task = document.find_task(task_id)
    if task is None:
        raise TaskNotFoundError(f"Task not found: {task_id}")
    return task


def _finish(split: SplitText, *, ends_with_newline: Optional[bool] = None,
            what: str = "Edit") -> str:
    new_text = split.join(ends_with_newline)
    validation = validate_plan(new_text)
    if validation.errors:
        first = validation.errors[0]
        raise PlanValidationError(
            f"{what} produced invalid document: {first.message}", validation.errors
        )
    return new_text


def _task_line(split: SplitText, task: Task) -> str:
    if task.line >= len(split.lines):
        raise EditRefusedError(f"Invalid task line index: {task.line}")
    return split.lines[task.line]


def _replace_range(lines: List[str], line_range: LineRange, replacement: Sequence[str]) -> None:
    lines[line_range.start_line:line_range.end_line + 1] = list(replacement)


def ensure_format_header(lines: List[str]) -> bool:
    """Insert the format header (and a blank line) at the top when it is absent."""
    if find_format_header(lines) is not None:
        return False
    lines[0:0] = [FORMAT_HEADER, ""]
    return True


def _append_section(lines: List[str], section_path: Sequence[str]) -> int:
    """
    Append the heading path at end of file and return the insertion index.

    Section creation is append-only so existing content never moves.
    """
    if lines and not is_blank(lines[-1]):
        lines.append("")
    for depth, text in enumerate(section_path):
        lines.append(f"{'#' * min(6, 2 + depth)} {text}")
    lines.append("")
    return len(lines)


# ---------------------------------------------------------------------------
# Task edits
# ---------------------------------------------------------------------------

def apply_set_status(text: str, task_id: str, status: str) -> EditResult:
    """Replace only the status symbol inside the task's brackets."""
    symbol = status_to_symbol(status)
    task = find_task(require_parsed(text), task_id)
    split = split_lines(text)

    updated, count = _STATUS_RE.subn(lambda m: f"{m.group(1)}{symbol}{m.group(2)}",
                                     _task_line(split, task), count=1)
    if count == 0:
        raise EditRefusedError("Failed to update status (task line not in expected format)")
    split.lines[task.line] = updated

    new_text = _finish(split)
    return EditResult(new_text, new_text != text)


def apply_rename(text: str, task_id: str, title: str) -> EditResult:
    """Splice a new title between the checkbox prefix and the id trailer."""
    safe_title = sanitize_task_title(title)
    task = find_task(require_parsed(text), task_id)
    split = split_lines(text)

    line = _task_line(split, task)
    if parse_task_line_strict(line) is None:
        raise EditRefusedError("Failed to rename (task line not in expected format)")
    prefix = _TITLE_PREFIX_RE.match(line)
    suffix = _TITLE_SUFFIX_RE.search(line)
    if not prefix or not suffix:
        raise EditRefusedError("Failed to rename (could not locate title region)")
    split.lines[task.line] = f"{prefix.group(1)}{safe_title}{suffix.group(1)}"

    new_text = _finish(split)
    return EditResult(new_text, new_text != text)


def apply_delete(text: str, task_id: str) -> EditResult:
    """Remove the task's whole block: its line, body and nested tasks."""
    task = find_task(require_parsed(text), task_id)
    split = split_lines(text)

    start, end = task.line, task.block_end_line
    if start < 0 or end < start or end >= len(split.lines):
        raise EditRefusedError(f"Invalid task block range: {start}-{end}")
    del split.lines[start:end + 1]

    new_text = _finish(split)
    return EditResult(new_text, new_text != text)


def apply_add_task(
    text: str,
    *,
    title: str,
    status: str = "todo",
    section_path: Optional[Sequence[str]] = None,
    parent_task_id: Optional[str] = None,
    before_task_id: Optional[str] = None,
    body_markdown: Optional[str] = None,
) -> AddTaskResult:
    """
    Insert a new task line (and optional body) and return its generated id.

    Insertion point, highest priority first:
    - ``before_task_id``: sibling immediately before that task, at its indent.
    - ``parent_task_id``: last line of the parent's block, at parent indent + 2.
    - ``section_path``: end of that section's range; the heading path is
      appended at end of file when it does not exist yet.
    - otherwise: end of file, indent 0.

    A document that fails to parse is only accepted when its sole defect is a
    missing format header, which is then inserted. The result always ends with
    a newline.
    """
    if before_task_id and (parent_task_id or section_path):
        raise InvalidRequestError("before_task_id cannot be combined with parent_task_id or section_path")
    status_to_symbol(status)
    sanitize_task_title(title)
    if section_path:
        section_path = [sanitize_section_name(name) for name in section_path]

    split = split_lines(text)
    parsed = parse_plan(text)
    document = parsed.document
    if document is None:
        blocking = [d for d in validate_plan(text).errors if d.code != MISSING_FORMAT_HEADER]
        if blocking:
            raise EditRefusedError(
                f"Refusing to add task: document has validation errors (e.g. {blocking[0].code})"
            )
        ensure_format_header(split.lines)
        document = require_parsed(split.join())

    task_id = generate_unique_task_id(document.tasks_by_id)

    insert_at = len(split.lines)
    indent = 0
    if before_task_id:
        anchor = find_task(document, before_task_id)
        indent = anchor.indent
        insert_at = anchor.line
    elif parent_task_id:
        parent = find_task(document, parent_task_id)
        indent = parent.indent + 2
        insert_at = parent.block_end_line + 1
    elif section_path:
        section = document.find_section(list(section_path))
        if section is None:
            insert_at = _append_section(split.lines, section_path)
        else:
            insert_at = section.end_line + 1

    new_lines = [render_task_line(indent, status, title, task_id)]
    if body_markdown is not None:
        new_lines.extend(encode_body(body_markdown, indent + 2))
    split.lines[insert_at:insert_at] = new_lines

    new_text = _finish(split, ends_with_newline=True, what="Add")
    return AddTaskResult(task_id, new_text)


def apply_set_task_body(text: str, task_id: str, body_markdown: Optional[str]) -> EditResult:
    """Replace the task's body block, insert one after the task line, or clear it (None)."""
    task = find_task(require_parsed(text), task_id)
    split = split_lines(text)

    if body_markdown is None:
        if task.body_range is None:
            return EditResult(text, False)
        _replace_range(split.lines, task.body_range, [])
    else:
        encoded = encode_body(body_markdown, task.indent + 2)
        if task.body_range is not None:
            _replace_range(split.lines, task.body_range, encoded)
        else:
            split.lines[task.line + 1:task.line + 1] = encoded

    new_text = _finish(split)
    return EditResult(new_text, new_text != text)


# ---------------------------------------------------------------------------
# Plan-level edits
# ---------------------------------------------------------------------------

def apply_set_plan_body(text: str, body_markdown: Optional[str]) -> EditResult:
    """Replace, insert or clear (None) the plan body under the title heading."""
    document = require_parsed(text)
    if document.title_line is None:
        raise EditRefusedError("Missing plan title heading (# ...)")
    split = split_lines(text)

    if body_markdown is None:
        if document.body_range is None:
            return EditResult(text, False)
        _replace_range(split.lines, document.body_range, [])
    else:
        encoded = encode_body(body_markdown, 0)
        if document.body_range is not None:
            _replace_range(split.lines, document.body_range, encoded)
        else:
            insert_at = document.title_line + 1
            while insert_at < len(split.lines) and is_blank(split.lines[insert_at]):
                insert_at += 1
            split.lines[insert_at:insert_at] = encoded

    new_text = _finish(split)
    return EditResult(new_text, new_text != text)


def apply_set_plan_title(text: str, title: str) -> EditResult:
    """Rewrite the first level-1 heading line and nothing else."""
    safe_title = sanitize_plan_title(title)
    document = require_parsed(text)
    if document.title_line is None:
        raise EditRefusedError("Missing plan title heading (# ...)")
    split = split_lines(text)
    split.lines[document.title_line] = f"# {safe_title}"

    new_text = _finish(split)
    return EditResult(new_text, new_text != text)
