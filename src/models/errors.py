"""
Exception hierarchy for plan document operations.

The parser and validator never raise; they return diagnostics. Everything
above them (editor, repair, storage, operations) raises one of these so the
transport layers can map failures to a stable ``code`` without string matching.
"""

from typing import List, Optional


class PlanError(Exception):
    """Base error for plan operations."""

    code = "PLAN_ERROR"


class InvalidRequestError(PlanError, ValueError):
    """Raised when the caller passes arguments that can never succeed."""

    code = "INVALID_REQUEST"


class InvalidIdError(InvalidRequestError):
    """Raised when a plan or task id does not satisfy the identifier grammar."""

    code = "INVALID_ID"


class PlanValidationError(PlanError):
    """Raised when a document is (or an edit would make it) structurally invalid."""

    code = "VALIDATION_FAILED"

    def __init__(self, message: str, diagnostics: Optional[List] = None) -> None:
        super().__init__(message)
        self.diagnostics = list(diagnostics or [])


class RepairFailedError(PlanValidationError):
    """Raised when the requested repair actions still leave the document invalid."""

    code = "REPAIR_FAILED"


class NotFoundError(PlanError):
    code = "NOT_FOUND"


class PlanNotFoundError(NotFoundError):
    """Raised when a plan file does not exist."""


class TaskNotFoundError(NotFoundError):
    """Raised when a task id is not present in the document."""


class NoDefaultTaskError(NotFoundError):
    """Raised when a default target is requested but every task is done."""

    code = "NO_UNFINISHED_TASK"


class ConflictError(PlanError):
    """Raised for collisions and ambiguous actions."""

    code = "CONFLICT"


class EtagMismatchError(ConflictError):
    """Raised when the caller's expected etag does not match the file on disk."""

    def __init__(self, current: str, expected: str) -> None:
        super().__init__(f"CONFLICT: etag mismatch (current={current}, if_match={expected})")
        self.current = current
        self.expected = expected


class AmbiguousTargetError(ConflictError):
    code = "AMBIGUOUS_TARGET"


class PlanExistsError(ConflictError):
    code = "PLAN_EXISTS"


class EditRefusedError(PlanError):
    """
    Raised when an edit cannot be applied safely.

    Either the document has unrelated structural errors, or the target line no
    longer has the shape the parsed model says it has.
    """

    code = "REFUSED"


class PathEscapeError(PlanError):
    """Raised when a resolved path would leave the configured root directory."""

    code = "PATH_ESCAPE"
