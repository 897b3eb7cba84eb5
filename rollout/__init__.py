"""
Rollout scheduling and progress reconciliation engine.

1. CalendarMath - working-day arithmetic.
2. RolloutPlanCalculator - start date + curriculum -> dated plan.
3. SessionExpander - plan + weekly template -> concrete sessions.
4. ProgressReconciler - plan + assessment facts -> progress snapshot.
"""

from .calendar_math import (
    DAYS_PER_CREDIT,
    HolidayCalendar,
    add_working_days,
    credits_to_duration_days,
    is_working_day,
    working_days_between,
    year_end_closure
)

from .errors import (
    ConflictError,
    DriftWarning,
    PlanNotFoundError,
    RolloutError,
    StaleDataWarning,
    ValidationError
)

from .planner import RolloutPlanCalculator, WORKPLACE_BUFFER_DAYS
from .constraints import ConflictChecker, SessionConflict
from .state import ExpansionResult
from .expander import SessionExpander
from .reconciler import ClassificationPolicy, ProgressReconciler, classify
from .service import RolloutService

__all__ = [
    # --- Calendar ---
    "DAYS_PER_CREDIT",
    "HolidayCalendar",
    "add_working_days",
    "credits_to_duration_days",
    "is_working_day",
    "working_days_between",
    "year_end_closure",

    # --- Errors ---
    "ConflictError",
    "DriftWarning",
    "PlanNotFoundError",
    "RolloutError",
    "StaleDataWarning",
    "ValidationError",

    # --- Engines ---
    "RolloutPlanCalculator",
    "WORKPLACE_BUFFER_DAYS",
    "ConflictChecker",
    "SessionConflict",
    "ExpansionResult",
    "SessionExpander",
    "ClassificationPolicy",
    "ProgressReconciler",
    "classify",
    "RolloutService",
]
