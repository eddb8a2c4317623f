"""Shared helpers for the orchestration layer: etag checks, stats and write-back."""

import logging
import re
from typing import Dict, Optional

from models.errors import EtagMismatchError
from parsers.plan_parser import parse_task_line_strict
from storage.plan_store import PlanConfig, PlanFile, read_plan_file, sha256_hex, write_file_atomic
from utils.formatting import FORMAT_NAME, FORMAT_VERSION, symbol_to_status
from utils.lines import document_lines

log = logging.getLogger(__name__)

FORMAT_INFO = {"name": FORMAT_NAME, "version": FORMAT_VERSION}

_TITLE_RE = re.compile(r"^#\s+(.+?)\s*$")


def require_if_match(plan_id: str, current: str, if_match: Optional[str]) -> None:
    """Abort before any edit work when the caller's etag is stale."""
    if if_match is not None and if_match != current:
        log.warning("Etag conflict on plan %s (current=%s, if_match=%s)", plan_id, current[:12], if_match[:12])
        raise EtagMismatchError(current, if_match)


def read_for_write(config: PlanConfig, plan_id: str, if_match: Optional[str]) -> PlanFile:
    plan_file = read_plan_file(config, plan_id)
    require_if_match(plan_id, plan_file.etag, if_match)
    return plan_file


def commit(plan_file: PlanFile, new_text: str) -> str:
    """Write ``new_text`` back if it differs and return the resulting etag."""
    if new_text == plan_file.text:
        return plan_file.etag
    write_file_atomic(plan_file.absolute_path, new_text)
    return sha256_hex(new_text)


def compute_stats(text: str) -> Dict[str, int]:
    """
    Count strict task lines by status.

    Works line by line, so it also gives a useful answer for documents that
    do not parse (e.g. when listing a plan with duplicate ids).
    """
    stats = {"total": 0, "todo": 0, "doing": 0, "done": 0}
    for line in document_lines(text):
        task = parse_task_line_strict(line)
        if task is None:
            continue
        stats["total"] += 1
        stats[symbol_to_status(task.symbol)] += 1
    return stats


def extract_title(text: str) -> Optional[str]:
    for line in document_lines(text):
        m = _TITLE_RE.match(line)
        if m:
            return m.group(1)
    return None
