"""
Data models package for the Rollout Scheduler.

This package exports the four pillars of the data architecture:
1. Curriculum (Module, UnitStandard)
2. Plan (RolloutPlan and its dated windows)
3. Schedule (templates, cadences, sessions)
4. Progress (assessment facts, snapshots)
"""

from .curriculum import (
    CurriculumDefinition,
    Module,
    UnitStandard
)

from .plan import (
    RolloutPlan,
    ModuleWindow,
    UnitStandardWindow
)

from .schedule import (
    ActivityKind,
    Cadence,
    GroupSchedule,
    ScheduleTemplate,
    Session,
    SessionKey,
    SlotKey,
    TemplateEntry
)

from .progress import (
    AssessmentFact,
    AssessmentOutcome,
    AssessmentType,
    Classification,
    ModuleProgress,
    ProgressSnapshot,
    Severity
)

__all__ = [
    # --- Curriculum Models ---
    "CurriculumDefinition",
    "Module",
    "UnitStandard",

    # --- Plan Models ---
    "RolloutPlan",
    "ModuleWindow",
    "UnitStandardWindow",

    # --- Schedule Models ---
    "ActivityKind",
    "Cadence",
    "GroupSchedule",
    "ScheduleTemplate",
    "Session",
    "SessionKey",
    "SlotKey",
    "TemplateEntry",

    # --- Progress Models ---
    "AssessmentFact",
    "AssessmentOutcome",
    "AssessmentType",
    "Classification",
    "ModuleProgress",
    "ProgressSnapshot",
    "Severity",
]
