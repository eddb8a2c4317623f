from .doc_tools import register_doc_tools
from .plan_tools import register_plan_tools
from .task_tools import register_task_tools

__all__ = ["register_doc_tools", "register_plan_tools", "register_task_tools"]
