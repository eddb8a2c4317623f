from .plan import Heading, LineRange, ParseResult, PlanDocument, Task, TaskStatus, flatten_tasks
from .diagnostics import Diagnostic, error_diagnostic, warning_diagnostic

__all__ = [
    "Heading",
    "LineRange",
    "ParseResult",
    "PlanDocument",
    "Task",
    "TaskStatus",
    "flatten_tasks",
    "Diagnostic",
    "error_diagnostic",
    "warning_diagnostic",
]
