"""Task result - the outcome value passed between build stages."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TaskResult:
    """Outcome of a build stage.

    Failure is a value: stages return ``TaskResult(success=False, ...)``
    instead of raising, so the orchestrator can keep going with other build
    files and report the first failure at the end.

    Attributes:
        success: Whether the stage succeeded
        error_message: Diagnostic text for a failure (None on success)
    """

    success: bool = True
    error_message: Optional[str] = None

    @classmethod
    def ok(cls) -> "TaskResult":
        return cls()

    @classmethod
    def failure(cls, error_message: str) -> "TaskResult":
        return cls(success=False, error_message=error_message)

    def __bool__(self) -> bool:
        return self.success

    def __str__(self) -> str:
        if self.success:
            return "success"
        return f"failure: {self.error_message}"
