"""
Helpers shared by the MCP tool wrappers.

Tools return JSON strings. A PlanError becomes ``{"error": ..., "code": ...}``
so the calling agent sees a stable code instead of a stack trace.
"""

import json
import logging
from typing import Callable, Optional, TypeVar

from models.errors import PlanError, PlanExistsError, PlanNotFoundError
from operations.plans import create_plan
from storage.plan_store import PlanConfig

log = logging.getLogger(__name__)

DEFAULT_PLAN_ID = "active-plan"
DEFAULT_PLAN_TITLE = "Active Plan"

T = TypeVar("T")


def to_json(payload) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def run_tool(fn: Callable[[], object]) -> str:
    """Call ``fn`` and serialize its result, or the PlanError it raised."""
    try:
        return to_json(fn())
    except PlanError as e:
        log.info("Tool call failed (%s): %s", e.code, e)
        return to_json({"error": str(e), "code": e.code})


def ensure_default_plan(config: PlanConfig) -> None:
    try:
        create_plan(config, DEFAULT_PLAN_TITLE, plan_id=DEFAULT_PLAN_ID, template="basic")
    except PlanExistsError:
        pass


def with_default_plan(config: PlanConfig, plan_id: Optional[str], fn: Callable[[str], T]) -> T:
    """
    Run ``fn`` against ``plan_id``, or against the default plan when omitted.

    The default plan is created on first use: if it is missing, it is created
    and ``fn`` is retried once. An explicit plan id is never auto-created.
    """
    resolved = plan_id or DEFAULT_PLAN_ID
    try:
        return fn(resolved)
    except PlanNotFoundError:
        if plan_id:
            raise
        log.info("Creating default plan %s", DEFAULT_PLAN_ID)
        ensure_default_plan(config)
        return fn(resolved)
