"""Document-level operations: validate and repair a stored plan."""

import logging
from typing import Iterable, Optional

from editor.repair import repair_plan
from operations.common import commit, read_for_write
from parsers.validator import validate_plan
from storage.plan_store import PlanConfig, read_plan_file, sha256_hex

log = logging.getLogger(__name__)


def validate_plan_doc(config: PlanConfig, plan_id: str) -> dict:
    """Validate a stored plan. Reported line numbers are 1-based."""
    result = validate_plan(read_plan_file(config, plan_id).text)
    return {
        "errors": [d.to_dict() for d in result.errors],
        "warnings": [d.to_dict() for d in result.warnings],
    }


def repair_plan_doc(
    config: PlanConfig,
    plan_id: str,
    actions: Iterable[str],
    *,
    dry_run: bool = False,
    if_match: Optional[str] = None,
) -> dict:
    """
    Apply the named repair actions to a stored plan.

    With ``dry_run`` nothing is written; the returned etag is the one the
    repaired document would have.
    """
    plan_file = read_for_write(config, plan_id, if_match)
    result = repair_plan(plan_file.text, actions)

    if dry_run:
        etag = sha256_hex(result.new_text)
    else:
        etag = commit(plan_file, result.new_text)
        if result.new_text != plan_file.text:
            log.info("Repaired plan %s (%s, etag %s)", plan_id, result.applied.to_dict(), etag[:12])
    return {"etag": etag, "applied": result.applied.to_dict(), "dry_run": dry_run}
