from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of a user-initiated mutation.

    ``error`` carries the backend's message verbatim so it can be shown next
    to the control that triggered the action. ``notice`` is an optional
    informational message for successful outcomes.
    """

    error: str | None = None
    notice: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, notice: str | None = None) -> "OperationResult":
        return cls(notice=notice)

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(error=error)
