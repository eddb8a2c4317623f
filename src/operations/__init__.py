from .docs import repair_plan_doc, validate_plan_doc
from .plans import create_plan, get_plan, list_plans, update_plan
from .tasks import add_task, delete_task, get_task, search_tasks, select_default_task, update_task

__all__ = [
    "repair_plan_doc",
    "validate_plan_doc",
    "create_plan",
    "get_plan",
    "list_plans",
    "update_plan",
    "add_task",
    "delete_task",
    "get_task",
    "search_tasks",
    "select_default_task",
    "update_task",
]
