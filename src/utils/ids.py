"""
Identifier rules and id generation.

Plan ids (used as ``<plan_id>.md`` filenames) and task ids (stored in the
trailing ``<!-- long-term-plan:id=... -->`` comment) share one grammar:
1..128 ASCII characters, first alphanumeric, the rest alphanumeric, ``_`` or ``-``.
"""

import re
import secrets
import time
from typing import Container

from models.errors import InvalidIdError, PlanValidationError

SAFE_ID_PATTERN = r"[A-Za-z0-9][A-Za-z0-9_-]{0,127}"
SAFE_ID_RE = re.compile(SAFE_ID_PATTERN)
SAFE_ID_EXPECTATION = "expected 1..128 chars: first [A-Za-z0-9], then [A-Za-z0-9_-]"

# Plan ids derived from titles are capped well below the grammar's limit.
_SLUG_MAX_LENGTH = 64


def is_safe_id(value: str) -> bool:
    return isinstance(value, str) and SAFE_ID_RE.fullmatch(value) is not None


def assert_safe_id(kind: str, value: str) -> None:
    """Raise InvalidIdError naming ``kind`` (e.g. "plan_id") if value is unsafe."""
    if not is_safe_id(value):
        raise InvalidIdError(f"Invalid {kind}: {value!r}")


def generate_task_id() -> str:
    """
    Generate a cryptographically random task id.

    Returns:
        ``t_`` followed by 32 lowercase hex characters, e.g. "t_9f1c..."
    """
    return f"t_{secrets.token_hex(16)}"


def generate_unique_task_id(existing: Container[str]) -> str:
    """
    Generate a task id and check it against the ids already in the document.

    A collision is practically impossible, so it is reported rather than retried.
    """
    task_id = generate_task_id()
    if task_id in existing:
        raise PlanValidationError(f"Generated duplicate task id (unexpected): {task_id}")
    return task_id


def slugify_plan_id(title: str) -> str:
    """Derive a plan id from a title, falling back to a time-based id."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.strip().lower()).strip("-")
    if slug:
        return slug[:_SLUG_MAX_LENGTH].rstrip("-")
    return f"plan-{int(time.time() * 1000):x}"
