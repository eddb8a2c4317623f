from .edit import (
    AddTaskResult,
    EditResult,
    apply_add_task,
    apply_delete,
    apply_rename,
    apply_set_plan_body,
    apply_set_plan_title,
    apply_set_status,
    apply_set_task_body,
    require_parsed,
)
from .repair import REPAIR_ACTIONS, RepairResult, RepairSummary, repair_plan

__all__ = [
    "AddTaskResult",
    "EditResult",
    "apply_add_task",
    "apply_delete",
    "apply_rename",
    "apply_set_plan_body",
    "apply_set_plan_title",
    "apply_set_status",
    "apply_set_task_body",
    "require_parsed",
    "REPAIR_ACTIONS",
    "RepairResult",
    "RepairSummary",
    "repair_plan",
]
