from .plan_parser import parse_plan, parse_task_line_strict
from .validator import ValidationResult, validate_plan

__all__ = [
    "parse_plan",
    "parse_task_line_strict",
    "ValidationResult",
    "validate_plan",
]
