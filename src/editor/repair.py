"""
Conservative repair of plan markdown v1 documents.

Only the named actions run, in the order given:
    addFormatHeader  insert the format header at the top when absent
    addMissingIds    append a fresh id trailer to task-like lines without one

Nothing else is normalized (no reindenting, status coercion or reordering), so
a repair never produces a large diff. Lines inside fenced code blocks are left
alone. The result is re-validated; a repair that leaves the document invalid
raises RepairFailedError instead of returning a partial fix.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List

from editor.edit import ensure_format_header
from models.errors import InvalidRequestError, RepairFailedError
from parsers.validator import validate_plan
from utils.formatting import render_id_trailer
from utils.ids import generate_task_id
from utils.lines import split_lines

ADD_FORMAT_HEADER = "addFormatHeader"
ADD_MISSING_IDS = "addMissingIds"
REPAIR_ACTIONS = (ADD_FORMAT_HEADER, ADD_MISSING_IDS)

TASK_LINE_CANDIDATE_RE = re.compile(r"^(\s*-\s+\[([ *√])\]\s+.*?)(\s*)$")
TASK_ID_TRAILER_RE = re.compile(r"<!--\s*long-term-plan:id=([A-Za-z0-9_-]+)\s*-->\s*$")
FENCE_PREFIX = "```"


@dataclass
class RepairSummary:
    add_format_header: bool = False
    add_missing_ids: int = 0

    @property
    def changed(self) -> bool:
        return self.add_format_header or self.add_missing_ids > 0

    def to_dict(self) -> dict:
        return {
            "add_format_header": self.add_format_header,
            "add_missing_ids": self.add_missing_ids,
        }


@dataclass
class RepairResult:
    new_text: str
    applied: RepairSummary


def _add_missing_ids(lines: List[str]) -> int:
    added = 0
    in_fence = False
    for index, line in enumerate(lines):
        if line.lstrip().startswith(FENCE_PREFIX):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        if not TASK_LINE_CANDIDATE_RE.match(line) or TASK_ID_TRAILER_RE.search(line):
            continue
        lines[index] = f"{line.rstrip()} {render_id_trailer(generate_task_id())}"
        added += 1
    return added


def repair_plan(text: str, actions: Iterable[str]) -> RepairResult:
    """
    Apply repair actions to a plan document.

    Returns the repaired text (always ending with a newline) and a summary of
    what changed, so callers can report precisely instead of diffing.
    """
    actions = list(actions)
    unknown = [a for a in actions if a not in REPAIR_ACTIONS]
    if unknown:
        raise InvalidRequestError(f"Unknown repair action: {unknown[0]}")

    split = split_lines(text)
    applied = RepairSummary()
    for action in actions:
        if action == ADD_FORMAT_HEADER:
            applied.add_format_header = ensure_format_header(split.lines) or applied.add_format_header
        elif action == ADD_MISSING_IDS:
            applied.add_missing_ids += _add_missing_ids(split.lines)

    new_text = split.join(ends_with_newline=True)
    validation = validate_plan(new_text)
    if validation.errors:
        first = validation.errors[0]
        raise RepairFailedError(f"Repair failed: {first.code} {first.message}", validation.errors)
    return RepairResult(new_text, applied)
