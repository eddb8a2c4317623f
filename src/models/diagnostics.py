"""
Uniform diagnostic records produced by the parser and validator.

Line numbers are 0-based internally. Operations convert them to 1-based when
they are reported to callers.
"""

from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional

Severity = Literal["error", "warning"]

MISSING_FORMAT_HEADER = "MISSING_FORMAT_HEADER"
DUPLICATE_TASK_ID = "DUPLICATE_TASK_ID"
NO_TASKS = "NO_TASKS"
INVALID_STATUS_SYMBOL = "INVALID_STATUS_SYMBOL"
MISSING_TASK_ID = "MISSING_TASK_ID"
INVALID_TASK_ID = "INVALID_TASK_ID"
MALFORMED_TASK_LINE = "MALFORMED_TASK_LINE"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    code: str
    message: str
    line: Optional[int] = None

    @property
    def key(self) -> str:
        """Identity used when merging diagnostics from several passes."""
        line = "" if self.line is None else str(self.line)
        return f"{self.severity}:{self.code}:{line}:{self.message}"

    def describe(self) -> str:
        """Render as ``CODE@line: message`` with a 1-based line."""
        where = f"@{self.line + 1}" if self.line is not None else ""
        return f"{self.code}{where}: {self.message}"

    def to_dict(self) -> dict:
        d = {"code": self.code, "message": self.message}
        if self.line is not None:
            d["line"] = self.line + 1
        return d


def error_diagnostic(code: str, message: str, line: Optional[int] = None) -> Diagnostic:
    return Diagnostic("error", code, message, line)


def warning_diagnostic(code: str, message: str, line: Optional[int] = None) -> Diagnostic:
    return Diagnostic("warning", code, message, line)


def describe_all(diagnostics: Iterable[Diagnostic]) -> str:
    return "\n".join(d.describe() for d in diagnostics)


def merge_unique(target: List[Diagnostic], seen: set, diagnostics: Iterable[Diagnostic]) -> None:
    """Append diagnostics to ``target`` unless an identical one is already there."""
    for diagnostic in diagnostics:
        if diagnostic.key in seen:
            continue
        seen.add(diagnostic.key)
        target.append(diagnostic)
