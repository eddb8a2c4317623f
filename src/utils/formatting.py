"""
Canonical formatting for plan markdown v1.

This module is the single source of truth for the on-disk encoding: the format
header, the task id trailer, the status symbols, and the blockquote encoding
used for plan and task bodies.

Task line:   ``- [ ] Title <!-- long-term-plan:id=t_abc123 -->``
Body line:   ``  > text`` (or ``  >`` for an empty line), indented two spaces
             past the owning task; plan bodies use indent 0.
"""

from typing import Dict, List, Optional

from models.errors import InvalidRequestError

FORMAT_HEADER = "<!-- long-term-plan:format=v1 -->"
FORMAT_NAME = "long-term-plan-md"
FORMAT_VERSION = "v1"

# The header must appear within this many lines from the top of the file.
HEADER_SCAN_LINES = 30

TASK_ID_KEY = "long-term-plan:id"
DEFAULT_PLANS_DIR = ".long-term-plan"
UNTITLED_PLAN = "Untitled Plan"

TASK_STATUSES = ("todo", "doing", "done")

STATUS_TO_SYMBOL: Dict[str, str] = {
    "todo": " ",
    "doing": "*",
    "done": "√",
}

SYMBOL_TO_STATUS: Dict[str, str] = {v: k for k, v in STATUS_TO_SYMBOL.items()}

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"


def status_to_symbol(status: str) -> str:
    try:
        return STATUS_TO_SYMBOL[status]
    except KeyError:
        raise InvalidRequestError(
            f"Invalid status: {status!r} (expected one of {', '.join(TASK_STATUSES)})"
        ) from None


def symbol_to_status(symbol: str) -> str:
    return SYMBOL_TO_STATUS[symbol]


def find_format_header(lines: List[str]) -> Optional[int]:
    """Return the index of the header line within the scan window, or None."""
    for index, line in enumerate(lines[:HEADER_SCAN_LINES]):
        if FORMAT_HEADER in line:
            return index
    return None


def render_id_trailer(task_id: str) -> str:
    return f"<!-- {TASK_ID_KEY}={task_id} -->"


def sanitize_task_title(title: str) -> str:
    """
    Collapse a task title onto one line and reject comment delimiters.

    Task ids live in an HTML comment at the end of the line, so a title
    containing ``<!--`` or ``-->`` could never be parsed back.
    """
    normalized = title.replace("\r\n", " ").replace("\n", " ").strip()
    if not normalized:
        raise InvalidRequestError("Task title must be non-empty")
    if COMMENT_OPEN in normalized or COMMENT_CLOSE in normalized:
        raise InvalidRequestError(
            'Task title must not include HTML comment markers ("<!--" or "-->")'
        )
    return normalized


def sanitize_plan_title(title: str) -> str:
    normalized = title.replace("\r\n", " ").replace("\n", " ").strip()
    if not normalized:
        raise InvalidRequestError("Plan title must be non-empty")
    return normalized


def sanitize_section_name(name: str) -> str:
    """One heading's text: single line, stripped, as the parser records it."""
    normalized = name.replace("\r\n", " ").replace("\n", " ").replace("\r", " ").strip()
    if not normalized:
        raise InvalidRequestError("Section names must be non-empty")
    return normalized


def render_task_line(indent: int, status: str, title: str, task_id: str) -> str:
    """Build a strict task line."""
    prefix = f"{' ' * indent}- [{status_to_symbol(status)}] "
    return f"{prefix}{sanitize_task_title(title)} {render_id_trailer(task_id)}"


def is_blockquote_line(line: str) -> bool:
    return line.lstrip(" ").startswith(">")


def decode_body_line(line: str) -> str:
    """Strip leading spaces, one ``>`` and at most one following space."""
    trimmed = line.lstrip(" ")
    if not trimmed.startswith(">"):
        return ""
    rest = trimmed[1:]
    return rest[1:] if rest.startswith(" ") else rest


def encode_body(body_markdown: str, indent: int) -> List[str]:
    """Encode free-form markdown as blockquote lines at ``indent`` spaces."""
    normalized = body_markdown.replace("\r\n", "\n").replace("\r", "\n")
    prefix = f"{' ' * indent}>"
    return [prefix if not line else f"{prefix} {line}" for line in normalized.split("\n")]
