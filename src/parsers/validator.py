"""
Validator for plan markdown v1 documents.

Compared to parse_plan, detection here is deliberately looser: any
``- [X] ...`` line is a candidate task line, and the validator explains why a
candidate fails the strict grammar. The result merges these findings with the
parser's own diagnostics, de-duplicated by (severity, code, line, message).

Used for interactive feedback, and by the editor and repair engine to check
their own output before it is accepted.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from models.diagnostics import (
    DUPLICATE_TASK_ID,
    INVALID_STATUS_SYMBOL,
    INVALID_TASK_ID,
    MALFORMED_TASK_LINE,
    MISSING_FORMAT_HEADER,
    MISSING_TASK_ID,
    NO_TASKS,
    Diagnostic,
    error_diagnostic,
    merge_unique,
    warning_diagnostic,
)
from parsers.plan_parser import parse_plan, parse_task_line_strict
from utils.formatting import FORMAT_HEADER, STATUS_TO_SYMBOL, SYMBOL_TO_STATUS, find_format_header
from utils.ids import SAFE_ID_EXPECTATION, is_safe_id
from utils.lines import raw_lines

TASK_LINE_LOOSE_RE = re.compile(r"^(\s*)-\s+\[([^\]])\]\s+(.*)$")

# Only ids made of the id charset count as "present"; anything else in a
# look-alike comment is reported as a missing id.
TASK_ID_TRAILER_RE = re.compile(r"<!--\s*long-term-plan:id=([A-Za-z0-9_-]+)\s*-->\s*$")

_EXPECTED_SYMBOLS = ", ".join(repr(s) for s in STATUS_TO_SYMBOL.values())
_EXPECTED_LINE = "- [ ] title <!-- long-term-plan:id=... -->"


@dataclass
class ValidationResult:
    errors: List[Diagnostic] = field(default_factory=list)
    warnings: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _classify_candidate(line: str, line_num: int, symbol: str) -> Optional[Diagnostic]:
    """Return the diagnostic for a candidate line that fails the strict grammar."""
    if symbol not in SYMBOL_TO_STATUS:
        return error_diagnostic(
            INVALID_STATUS_SYMBOL,
            f"Invalid status symbol: {symbol!r} (expected {_EXPECTED_SYMBOLS})",
            line_num,
        )

    id_match = TASK_ID_TRAILER_RE.search(line)
    if not id_match:
        return error_diagnostic(
            MISSING_TASK_ID,
            "Task line is missing required trailing id: <!-- long-term-plan:id=... -->",
            line_num,
        )

    task_id = id_match.group(1)
    if not is_safe_id(task_id):
        return error_diagnostic(
            INVALID_TASK_ID,
            f"Invalid task id: {task_id!r} ({SAFE_ID_EXPECTATION})",
            line_num,
        )

    return error_diagnostic(
        MALFORMED_TASK_LINE,
        f"Task line is malformed (expected: {_EXPECTED_LINE})",
        line_num,
    )


def validate_plan(text: str) -> ValidationResult:
    """
    Validate a plan markdown document and return diagnostics.

    Never raises. Always produces some diagnosis for a line that looks like an
    attempted task but is not a strict task line.
    """
    errors: List[Diagnostic] = []
    warnings: List[Diagnostic] = []
    error_keys: set = set()
    warning_keys: set = set()

    lines = raw_lines(text)
    header_line = find_format_header(lines)
    if header_line is None:
        merge_unique(
            errors,
            error_keys,
            [error_diagnostic(MISSING_FORMAT_HEADER, f"Missing required header: {FORMAT_HEADER}")],
        )

    seen_ids: set = set()
    for line_num, line in enumerate(lines):
        loose = TASK_LINE_LOOSE_RE.match(line)
        if not loose:
            continue

        strict = parse_task_line_strict(line)
        if strict is None:
            merge_unique(errors, error_keys, [_classify_candidate(line, line_num, loose.group(2))])
            continue

        if strict.id in seen_ids:
            merge_unique(
                errors,
                error_keys,
                [error_diagnostic(DUPLICATE_TASK_ID, f"Duplicate task id: {strict.id}", line_num)],
            )
        else:
            seen_ids.add(strict.id)

    parsed = parse_plan(text)
    merge_unique(errors, error_keys, parsed.errors)
    merge_unique(warnings, warning_keys, parsed.warnings)

    if not errors and not seen_ids and header_line is not None:
        merge_unique(
            warnings,
            warning_keys,
            [warning_diagnostic(NO_TASKS, "No tasks found in document.")],
        )

    return ValidationResult(errors=errors, warnings=warnings)
