"""
Parser for plan markdown v1 documents.

Main API:
    parse_plan(text)  → ParseResult
    parse_task_line_strict(line)  → StrictTaskLine | None

The parser is a pure function: no I/O, no exceptions. It walks the document
once, keeping a stack of open headings and a stack of open tasks, and records
for each heading the range it owns and for each task the block it spans.
Callers must not act on a partially-built model, so ``document`` is only
returned when there are no errors.
"""

import re
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

from models.diagnostics import (
    DUPLICATE_TASK_ID,
    MISSING_FORMAT_HEADER,
    NO_TASKS,
    Diagnostic,
    error_diagnostic,
    warning_diagnostic,
)
from models.plan import Heading, LineRange, ParseResult, PlanDocument, Task
from utils.formatting import (
    COMMENT_CLOSE,
    COMMENT_OPEN,
    FORMAT_HEADER,
    UNTITLED_PLAN,
    decode_body_line,
    find_format_header,
    is_blockquote_line,
    symbol_to_status,
)
from utils.ids import is_safe_id
from utils.lines import document_lines, is_blank, line_indent

HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)$")

TASK_LINE_STRICT_RE = re.compile(
    r"^( *)- \[([ *√])\] (.*?)(\s+<!--\s*long-term-plan:id=([A-Za-z0-9_-]+)\s*-->)\s*$"
)


class StrictTaskLine(NamedTuple):
    indent: int
    symbol: str
    title: str
    id: str


def parse_task_line_strict(line: str) -> Optional[StrictTaskLine]:
    """
    Match a line against the full task grammar.

    Strict format example:
        ``- [ ] Title <!-- long-term-plan:id=t_abc123 -->``

    Returns None when the line is not a valid task line, including lines whose
    title is empty or contains comment delimiters, and lines whose id fails
    the identifier grammar.
    """
    m = TASK_LINE_STRICT_RE.match(line)
    if not m:
        return None
    title = m.group(3).strip()
    task_id = m.group(5)
    if not title or not is_safe_id(task_id):
        return None
    if COMMENT_OPEN in title or COMMENT_CLOSE in title:
        return None
    return StrictTaskLine(len(m.group(1)), m.group(2), title, task_id)


# ---------------------------------------------------------------------------
# Body blocks
# ---------------------------------------------------------------------------

@dataclass
class _Body:
    markdown: str
    range: LineRange


def _read_task_body(lines: List[str], task_line: int, task_indent: int) -> Optional[_Body]:
    """Absorb the blockquote run directly under a task line, if any."""
    index = task_line + 1
    decoded: List[str] = []
    while index < len(lines):
        line = lines[index]
        if line_indent(line) < task_indent + 2 or not is_blockquote_line(line):
            break
        decoded.append(decode_body_line(line))
        index += 1
    if not decoded:
        return None
    return _Body("\n".join(decoded), LineRange(task_line + 1, index - 1))


def _read_plan_body(lines: List[str], title_line: Optional[int]) -> Optional[_Body]:
    """
    The plan body is the first blockquote run after the title heading,
    skipping blank lines in between. Later look-alike runs are ordinary text.
    """
    if title_line is None:
        return None
    index = title_line + 1
    while index < len(lines) and is_blank(lines[index]):
        index += 1
    start = index
    decoded: List[str] = []
    while index < len(lines) and is_blockquote_line(lines[index]):
        decoded.append(decode_body_line(lines[index]))
        index += 1
    if not decoded:
        return None
    return _Body("\n".join(decoded), LineRange(start, index - 1))


# ---------------------------------------------------------------------------
# Stack helpers
# ---------------------------------------------------------------------------

def _close_tasks(open_tasks: List[Task], boundary_line: int, indent: int) -> None:
    """Close open tasks whose indent is >= ``indent``; their block ends before the boundary."""
    while open_tasks and indent <= open_tasks[-1].indent:
        open_tasks.pop().block_end_line = boundary_line - 1


def _close_all_tasks(open_tasks: List[Task], boundary_line: int) -> None:
    while open_tasks:
        open_tasks.pop().block_end_line = boundary_line - 1


def _close_headings(open_headings: List[Heading], boundary_line: int, level: int) -> None:
    while open_headings and open_headings[-1].level >= level:
        open_headings.pop().end_line = boundary_line - 1


def _section_path(open_headings: List[Heading]) -> List[str]:
    return [h.text for h in open_headings if h.level >= 2]


# ---------------------------------------------------------------------------
# Main parse API
# ---------------------------------------------------------------------------

def parse_plan(text: str) -> ParseResult:
    """
    Parse a plan markdown document into headings and a task tree.

    Behavior:
    - Requires the format header within the first 30 lines.
    - Uses indentation to infer parent/child relationships between tasks.
    - Any heading closes every open task, regardless of indentation.
    - Duplicate task ids are errors; a header-only document is a warning.
    """
    errors: List[Diagnostic] = []
    warnings: List[Diagnostic] = []
    lines = document_lines(text)

    header_line = find_format_header(lines)
    if header_line is None:
        errors.append(
            error_diagnostic(MISSING_FORMAT_HEADER, f"Missing required header: {FORMAT_HEADER}")
        )

    headings: List[Heading] = []
    open_headings: List[Heading] = []
    open_tasks: List[Task] = []
    root_tasks: List[Task] = []
    tasks_by_id = {}
    title = UNTITLED_PLAN
    title_line: Optional[int] = None
    last_line = len(lines) - 1

    line_num = 0
    while line_num < len(lines):
        line = lines[line_num]

        heading_match = HEADING_RE.match(line)
        if heading_match:
            _close_all_tasks(open_tasks, line_num)
            level = len(heading_match.group(1))
            heading_text = heading_match.group(2).strip()
            if level == 1 and heading_text and title_line is None:
                title = heading_text
                title_line = line_num
            _close_headings(open_headings, line_num, level)
            heading = Heading(
                level=level,
                text=heading_text,
                line=line_num,
                path=[],
                start_line=line_num,
                end_line=last_line,
            )
            open_headings.append(heading)
            heading.path = _section_path(open_headings)
            headings.append(heading)
            line_num += 1
            continue

        parsed = parse_task_line_strict(line)
        if parsed:
            _close_tasks(open_tasks, line_num, parsed.indent)
            task = Task(
                id=parsed.id,
                title=parsed.title,
                status=symbol_to_status(parsed.symbol),
                indent=parsed.indent,
                line=line_num,
                block_end_line=last_line,
                section_path=_section_path(open_headings),
            )

            body = _read_task_body(lines, line_num, task.indent)
            if body:
                task.has_body = True
                task.body_markdown = body.markdown
                task.body_range = body.range

            if task.id in tasks_by_id:
                errors.append(
                    error_diagnostic(DUPLICATE_TASK_ID, f"Duplicate task id: {task.id}", task.line)
                )
            else:
                tasks_by_id[task.id] = task

            if open_tasks:
                parent = open_tasks[-1]
                task.parent_id = parent.id
                parent.children.append(task)
            else:
                root_tasks.append(task)
            open_tasks.append(task)

            line_num = body.range.end_line + 1 if body else line_num + 1
            continue

        if not is_blank(line) and open_tasks:
            indent = line_indent(line)
            if indent <= open_tasks[-1].indent:
                _close_tasks(open_tasks, line_num, indent)
        line_num += 1

    _close_all_tasks(open_tasks, len(lines))
    _close_headings(open_headings, len(lines), 1)

    if header_line is not None and not tasks_by_id:
        warnings.append(warning_diagnostic(NO_TASKS, "No tasks found in document."))

    ok = not errors
    document = None
    if ok:
        plan_body = _read_plan_body(lines, title_line)
        document = PlanDocument(
            title=title,
            headings=headings,
            root_tasks=root_tasks,
            tasks_by_id=tasks_by_id,
            title_line=title_line,
            has_body=plan_body is not None,
            body_markdown=plan_body.markdown if plan_body else None,
            body_range=plan_body.range if plan_body else None,
        )
    return ParseResult(ok=ok, document=document, errors=errors, warnings=warnings)
