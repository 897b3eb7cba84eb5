"""
Error taxonomy for the rollout engine.

Validation problems are raised immediately. Conflicts, drift and stale data
are collected as structured records so batch work can finish what it can.
"""

from datetime import date as date_type
from typing import List, Optional, Any


class RolloutError(Exception):
    """Base class for every error raised by the rollout engine."""


class ValidationError(RolloutError, ValueError):
    """Malformed or impossible input to a pure function. Never retried."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class ConflictError(RolloutError):
    """One or more sessions claim a (date, start time, venue) slot held by another group."""

    def __init__(self, conflicts: List[Any], message: Optional[str] = None):
        self.conflicts = list(conflicts)
        super().__init__(message or f"{len(self.conflicts)} session conflict(s)")


class PlanNotFoundError(RolloutError, LookupError):
    """A group has no persisted rollout plan."""

    def __init__(self, group_id: str):
        self.group_id = group_id
        super().__init__(f"Group {group_id} has no rollout plan")


class DriftWarning(UserWarning):
    """A persisted plan disagrees with what recomputation would produce."""

    def __init__(self, group_id: str, field: str, persisted: Any, expected: Any):
        self.group_id = group_id
        self.field = field
        self.persisted = persisted
        self.expected = expected
        super().__init__(
            f"Group {group_id}: {field} is {persisted!r}, recomputation gives {expected!r}"
        )


class StaleDataWarning(UserWarning):
    """Reconciliation input that falls outside the plan's timeline."""

    def __init__(self, student_id: str, reason: str, day: Optional[date_type] = None):
        self.student_id = student_id
        self.reason = reason
        self.day = day
        super().__init__(f"Student {student_id}: {reason}")
