"""
Core plan document models.

A PlanDocument is rebuilt from text on every read and every edit; nothing here
is cached between calls. Line numbers are 0-based indexes into the document's
lines (a trailing newline does not produce an extra line).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from models.diagnostics import Diagnostic

TaskStatus = Literal["todo", "doing", "done"]


@dataclass(frozen=True)
class LineRange:
    """Inclusive line range."""

    start_line: int
    end_line: int


@dataclass
class Heading:
    """
    A Markdown heading and the range of lines it owns.

    ``end_line`` runs until the next heading of equal-or-shallower level, or
    end of file. ``path`` holds the texts of the enclosing level 2+ headings
    (including this one); level 1 is the document title, not a section.
    """

    level: int
    text: str
    line: int
    path: List[str]
    start_line: int
    end_line: int


@dataclass
class Task:
    """
    A single checklist item parsed from a strict task line.

    ``block_end_line`` is the inclusive end of the task's own line, its body
    and every task nested beneath it. Delete removes exactly
    ``[line, block_end_line]``.
    """

    id: str
    title: str
    status: TaskStatus
    indent: int
    line: int
    block_end_line: int
    section_path: List[str] = field(default_factory=list)
    parent_id: Optional[str] = None
    children: List[Task] = field(default_factory=list)
    has_body: bool = False
    body_markdown: Optional[str] = None
    body_range: Optional[LineRange] = None

    def all_tasks(self) -> List[Task]:
        """Return this task and all descendants in document order."""
        return flatten_tasks([self])


@dataclass
class PlanDocument:
    """Represents a fully parsed plan markdown document."""

    title: str
    headings: List[Heading] = field(default_factory=list)
    root_tasks: List[Task] = field(default_factory=list)
    tasks_by_id: Dict[str, Task] = field(default_factory=dict)
    title_line: Optional[int] = None
    has_body: bool = False
    body_markdown: Optional[str] = None
    body_range: Optional[LineRange] = None

    def all_tasks(self) -> List[Task]:
        """Return every task as a flat list in document order."""
        return flatten_tasks(self.root_tasks)

    def find_task(self, task_id: str) -> Optional[Task]:
        return self.tasks_by_id.get(task_id)

    def find_section(self, section_path: List[str]) -> Optional[Heading]:
        """Return the first heading whose path equals ``section_path``."""
        for heading in self.headings:
            if heading.level >= 2 and heading.path == list(section_path):
                return heading
        return None


@dataclass
class ParseResult:
    """Outcome of parse_plan. ``document`` is None whenever ``ok`` is False."""

    ok: bool
    document: Optional[PlanDocument]
    errors: List[Diagnostic] = field(default_factory=list)
    warnings: List[Diagnostic] = field(default_factory=list)


def flatten_tasks(root_tasks: List[Task]) -> List[Task]:
    """Pre-order walk over a task forest using an explicit stack."""
    out: List[Task] = []
    stack = list(reversed(root_tasks))
    while stack:
        task = stack.pop()
        out.append(task)
        stack.extend(reversed(task.children))
    return out
