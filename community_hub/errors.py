"""Error taxonomy shared by the scheduling engine.

Every error the engine raises on purpose derives from EngineError, so the
database session scope and the API layer can tell them apart from
unexpected failures.
"""

from typing import Any, Optional


class EngineError(Exception):
    """Base exception for scheduling engine errors."""
    pass


class ValidationError(EngineError):
    """Raised when required input is missing or malformed."""
    pass


class NotFound(EngineError):
    """Raised when a referenced event or task does not exist."""

    def __init__(self, kind: str, identifier: Any):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class Forbidden(EngineError):
    """Raised when the acting user fails the role or ownership policy."""
    pass


class TaskFull(EngineError):
    """Raised when a sign-up would exceed an enforced task capacity."""

    def __init__(self, task_id: int, required_volunteers: int):
        self.task_id = task_id
        self.required_volunteers = required_volunteers
        super().__init__(
            f"Task {task_id} already has {required_volunteers} volunteers signed up"
        )


class StoreError(EngineError):
    """Raised when the underlying store fails. Retry or alert an operator."""
    pass


class PartialFailure(EngineError):
    """
    Raised on request when a recurrence run did not fully succeed.

    The generator itself returns a result object; this exception only wraps
    that result for callers that prefer to fail loudly.

    Attributes:
        result: The RecurrenceResult with one outcome per iteration
    """

    def __init__(self, result: Any, message: Optional[str] = None):
        self.result = result
        super().__init__(
            message or f"{result.incomplete_count} of {len(result.outcomes)} iterations did not complete"
        )
